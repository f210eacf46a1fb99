from typing import Dict, List, Optional


class TextValidator:
    """Basic text checks for catalog fields."""

    @staticmethod
    def normalize(text: Optional[str]) -> str:
        if text is None:
            return ""
        return text.strip()

    @staticmethod
    def is_non_empty(text: Optional[str]) -> bool:
        if not isinstance(text, str):
            return False
        return bool(text.strip())

    @staticmethod
    def missing_fields(fields: Dict[str, Optional[str]]) -> List[str]:
        """Return the names of the fields that are missing or blank, in the given order."""
        return [name for name, value in fields.items() if not TextValidator.is_non_empty(value)]
