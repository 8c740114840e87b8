import re
import secrets


def slugify(name: str) -> str:
    slug = name.lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[\s_]+", "-", slug)
    slug = re.sub(r"-+", "-", slug).strip("-")
    return slug


def generate_native_sku(prefix: str = "SF") -> str:
    """Internal SKU, independent of the brand's own SKU."""
    return f"{prefix}-{secrets.token_hex(5).upper()}"
