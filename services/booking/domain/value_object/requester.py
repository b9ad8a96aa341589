from dataclasses import dataclass


@dataclass(frozen=True)
class Requester:
    """予約の依頼者（ID + 連絡先）"""

    requester_id: str
    contact: str

    def __post_init__(self) -> None:
        if not self.requester_id or not self.requester_id.strip():
            raise ValueError("Requester id cannot be empty")
        if not self.contact or not self.contact.strip():
            raise ValueError("Requester contact cannot be empty")
        if len(self.contact) > 254:
            raise ValueError("Requester contact is too long (max 254 characters)")

    def __str__(self) -> str:
        return self.requester_id
