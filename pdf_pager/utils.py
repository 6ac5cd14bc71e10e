"""Utilities Module

Helper functions shared by the generator.
"""
import os
import re


def format_file_size(size_bytes: int) -> str:
    """
    Format file size in human-readable format.

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted string (e.g., "45.3 KB")
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / (1024 * 1024):.1f} MB"
    else:
        return f"{size_bytes / (1024 * 1024 * 1024):.1f} GB"


def clean_filename(name: str, extension: str = "pdf") -> str:
    """
    Build a safe file name from a document title.

    Args:
        name: Title or original file name
        extension: Extension to append, without the dot

    Returns:
        Cleaned file name, "document.<extension>" if nothing usable is left
    """
    # Remove path components
    name = os.path.basename(name.strip())

    # Drop an existing extension of the same kind
    stem, ext = os.path.splitext(name)
    if ext.lower() == f".{extension.lower()}":
        name = stem

    # Replace invalid characters
    name = re.sub(r'[^\w\s-]', ' ', name)

    # Replace spaces with underscores
    name = re.sub(r'\s+', '_', name).strip('_')

    # Limit length
    name = name[:50]

    return f"{name or 'document'}.{extension}"
