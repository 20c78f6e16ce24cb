from .readability import Readability, extract, extract_from_html

__all__ = ['Readability', 'extract', 'extract_from_html',]
