"""Binary file detection utilities."""

from pathlib import Path

# Common binary file extensions
BINARY_EXTENSIONS = {
    # Images
    ".png", ".jpg", ".jpeg", ".gif", ".bmp", ".ico", ".webp", ".tiff",
    # Documents
    ".pdf", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx", ".odt", ".ods",
    # Archives
    ".zip", ".tar", ".gz", ".tgz", ".rar", ".7z", ".bz2", ".xz", ".zst",
    # Executables
    ".exe", ".dll", ".so", ".dylib", ".bin",
    # Media
    ".mp3", ".mp4", ".avi", ".mov", ".wav", ".flac", ".mkv", ".webm",
    # Compiled
    ".pyc", ".pyo", ".class", ".o", ".obj", ".wasm",
    # Fonts
    ".ttf", ".otf", ".woff", ".woff2", ".eot",
    # Databases and packages
    ".db", ".sqlite", ".sqlite3", ".rpm", ".deb",
}


def is_binary_extension(path: str | Path) -> bool:
    """Check if file extension indicates binary content."""
    return Path(path).suffix.lower() in BINARY_EXTENSIONS


def is_binary_content(content: bytes, sample_size: int = 8192) -> bool:
    """Detect if content is binary.

    Null bytes are a strong indicator. Otherwise the sample is decoded as
    UTF-8 and counted for control characters, so that Korean or other
    non-Latin text logs are not mistaken for binary data.

    Args:
        content: Raw file content
        sample_size: Number of bytes to sample from the start

    Returns:
        True if content appears to be binary
    """
    if not content:
        return False

    sample = content[:sample_size]

    if b"\x00" in sample:
        return True

    text = sample.decode("utf-8", errors="replace")
    if not text:
        return False

    # Replacement chars (undecodable bytes) and control chars other than
    # common whitespace count as binary noise.
    noise = sum(
        1
        for ch in text
        if ch == "\ufffd" or (ord(ch) < 32 and ch not in "\t\n\r\f\v")
    )

    # If more than 30% noise, treat as binary
    return (noise / len(text)) > 0.30


def detect_binary(path: str | Path, content: bytes) -> bool:
    """Detect if a file is binary using both extension and content analysis.

    Args:
        path: File path (for extension check)
        content: Raw file content

    Returns:
        True if file is binary
    """
    # Fast path: check extension first
    if is_binary_extension(path):
        return True

    return is_binary_content(content)
