"""
User accounts persisted to users.json with a verify-after-write guard
"""
from typing import List, Optional

import structlog
from pydantic import ValidationError as SchemaError

from studymate.errors import ConflictError, StorageInconsistency
from studymate.models import User, utcnow
from studymate.services.json_store import JsonFileStore

logger = structlog.get_logger()


class AccountStore(JsonFileStore):
    # After a failed verification the mirror stays authoritative for the process lifetime
    sticky_fallback = True

    def _read_back(self) -> List[dict]:
        return self._load()

    def write_all(self, records: List[dict]) -> bool:
        """Backup, write, read back and compare counts; restore the backup on mismatch."""
        try:
            backup = self._load()
        except (OSError, ValueError):
            logger.info("account_backup_unavailable", path=str(self.path))
            backup = []

        if not super().write_all(records):
            return False

        try:
            written = self._read_back()
            if len(written) != len(records):
                raise StorageInconsistency(
                    "File verification failed - record count mismatch",
                    details={"expected": len(records), "found": len(written)},
                )
        except (OSError, ValueError, StorageInconsistency) as e:
            logger.error("account_write_verification_failed", path=str(self.path), error=str(e))
            if backup:
                logger.warning("account_backup_restoring", records=len(backup))
                try:
                    self._dump(backup)
                except OSError as restore_error:
                    logger.error("account_backup_restore_failed", error=str(restore_error))
            self._fall_back_to_mirror(records)
            return False

        logger.info("accounts_written", records=len(records))
        return True

    def _users(self) -> List[User]:
        users = []
        for record in self.read_all():
            try:
                users.append(User.model_validate(record))
            except SchemaError as e:
                logger.warning("account_record_invalid", record_id=record.get("id"), error=str(e))
        return users

    def count(self) -> int:
        return len(self.read_all())

    def find_by_email(self, email: str) -> Optional[User]:
        email = email.strip().lower()
        return next((u for u in self._users() if u.email == email), None)

    def find_by_id(self, user_id: str) -> Optional[User]:
        return next((u for u in self._users() if u.id == user_id), None)

    def create(self, email: str, password_hash: str, name: str) -> User:
        email = email.strip().lower()
        records = self.read_all()
        if any(r.get("email") == email for r in records):
            raise ConflictError("User with this email already exists")

        now = utcnow()
        user = User(
            id=self.next_id(),
            email=email,
            password_hash=password_hash,
            name=name.strip(),
            created_at=now,
            last_login=now,
        )
        records.append(user.to_record())
        if not self.write_all(records):
            logger.warning("account_saved_in_memory_only", user_id=user.id)
        return user

    def update_last_login(self, user_id: str) -> Optional[User]:
        records = self.read_all()
        for index, record in enumerate(records):
            if record.get("id") == user_id:
                user = User.model_validate(record).model_copy(update={"last_login": utcnow()})
                records[index] = user.to_record()
                self.write_all(records)
                return user
        return None
