import re


_SEPARATORS = re.compile(r'[/\\]')


def is_plain_name(name):
    """
    Check that a file name is a bare base name with no path parts
    """
    if not name or not isinstance(name, str):
        return False
    if name in ('.', '..') or '\x00' in name:
        return False
    return not _SEPARATORS.search(name)


def format_file_size(size_bytes):
    """
    Format a byte count for log output
    """
    if size_bytes == 0:
        return "0B"

    size_names = ["B", "KB", "MB", "GB", "TB"]
    i = 0
    while size_bytes >= 1024.0 and i < len(size_names) - 1:
        size_bytes /= 1024.0
        i += 1

    return f"{size_bytes:.1f}{size_names[i]}"
