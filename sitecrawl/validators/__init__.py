"""Validators for crawl request inputs."""

from sitecrawl.validators.url_validator import check_url_syntax, is_private_ip, validate_url

__all__ = ["check_url_syntax", "is_private_ip", "validate_url"]
