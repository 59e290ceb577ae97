"""Telegram session and saved API credentials."""
import json
import logging

from ..config import Config, session_path, credentials_path

log = logging.getLogger(__name__)


class TelegramSession:
    """Manages the Telethon session file and the credentials saved by ``login``."""

    def save_credentials(self, api_id: int, api_hash: str) -> None:
        data = {"api_id": api_id, "api_hash": api_hash}
        path = credentials_path()
        path.write_text(json.dumps(data))
        path.chmod(0o600)
        log.info(f"Credentials saved to {path}")

    def load_credentials(self) -> tuple[int, str]:
        """Saved ``(api_id, api_hash)``, or ``(0, "")`` if none are usable."""
        path = credentials_path()
        if not path.exists():
            return 0, ""
        try:
            data = json.loads(path.read_text())
            return int(data.get("api_id", 0)), str(data.get("api_hash", ""))
        except (OSError, ValueError) as e:
            log.warning(f"Failed to load credentials from {path}: {e}")
            return 0, ""

    def fill_credentials(self, config: Config) -> Config:
        """Use saved credentials for whatever the environment left unset."""
        if config.api_id and config.api_hash:
            return config
        api_id, api_hash = self.load_credentials()
        config.api_id = config.api_id or api_id
        config.api_hash = config.api_hash or api_hash
        return config

    def exists(self) -> bool:
        return session_path().with_suffix(".session").exists()

    def delete(self) -> None:
        """Delete session and credentials."""
        for path in (session_path().with_suffix(".session"), credentials_path()):
            path.unlink(missing_ok=True)
        log.info("Session deleted")
