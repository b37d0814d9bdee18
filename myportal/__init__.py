"""
Typed content models for legacy KMITL student portal pages.

    from myportal import map_html_to_content

    model = map_html_to_content(html, "https://.../midterm_score.php")
    model.to_dict()
"""

from myportal.mapper import map_document_to_content, map_html_to_content
from myportal.model import ContentModel

__all__ = ["ContentModel", "map_document_to_content", "map_html_to_content"]
