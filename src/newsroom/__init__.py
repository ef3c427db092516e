"""Newsroom - 新闻编辑室审稿系统."""

__version__ = "0.1.0"
