from typing import Any, Optional

__all__ = ["mask_phone", "phone_for_viewer"]


def mask_phone(phone: Any, visible: int = 4, mask: str = "XXXXXX") -> Optional[str]:
    """Keep the first ``visible`` characters and replace the rest with a fixed-length mask."""
    if phone is None:
        return None
    text = str(phone).strip()
    if not text:
        return None
    return text[: max(0, visible)] + mask


def phone_for_viewer(phone: Any, *, revealed: bool, visible: int = 4, mask: str = "XXXXXX") -> Optional[str]:
    if revealed:
        text = str(phone).strip() if phone is not None else ""
        return text or None
    return mask_phone(phone, visible=visible, mask=mask)
