from .article import Article
from .extract_options import ExtractOptions
from .metadata import ArticleMetadata

__all__ = ['Article', 'ArticleMetadata', 'ExtractOptions',]
