MAGIC_BYTES = {
    'image/jpeg': [b'\xff\xd8\xff'],
    'image/png': [b'\x89PNG'],
    'image/gif': [b'GIF87a', b'GIF89a'],
    'image/webp': [b'RIFF'],  # RIFF....WEBP
}

ALLOWED_MEDIA_TYPES = {'image/jpeg', 'image/png', 'image/webp', 'image/gif'}
ALLOWED_MEDIA_EXTENSIONS = {'.jpg', '.jpeg', '.png', '.webp', '.gif'}

ALLOWED_CSV_TYPES = {'text/csv', 'application/vnd.ms-excel', 'text/plain'}
MAX_CSV_SIZE = 2 * 1024 * 1024  # 2MB


def validate_file_magic(content: bytes, claimed_content_type: str) -> bool:
    """Validate file content matches claimed Content-Type via magic bytes."""
    signatures = MAGIC_BYTES.get(claimed_content_type, [])
    if not signatures:
        return False
    if claimed_content_type == 'image/webp' and content[8:12] != b'WEBP':
        return False
    return any(content.startswith(sig) for sig in signatures)
