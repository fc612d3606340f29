"""Pagination utilities"""

from math import ceil


def page_offset(page: int = 1, limit: int = 20) -> int:
    """Number of documents to skip for a 1-indexed page"""
    return (page - 1) * limit


def paginate(data: list, total: int, page: int = 1, limit: int = 20) -> dict:
    """
    Wrap one page of documents with its pagination data

    Args:
        data: Documents of the current page
        total: Number of documents matching the query
        page: Current page number (1-indexed)
        limit: Number of items per page

    Returns:
        Dictionary with pagination data
    """
    pages = ceil(total / limit) if total > 0 else 1

    return {
        "data": data,
        "total": total,
        "page": page,
        "limit": limit,
        "pages": pages
    }
