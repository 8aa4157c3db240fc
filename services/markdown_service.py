"""
Markdown Service - rendering, frontmatter parsing and import validation
"""
import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional

import frontmatter
import markdown
import yaml

logger = logging.getLogger(__name__)

MD_EXTENSIONS = ["fenced_code", "tables", "nl2br", "sane_lists"]

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
SLUG_PATTERN = re.compile(r"^[a-z0-9\-]+$")


@dataclass
class MarkdownIssue:
    type: str  # "error" | "warning"
    message: str

    def to_dict(self) -> dict:
        return {"type": self.type, "message": self.message}


@dataclass
class MarkdownDocument:
    metadata: dict = field(default_factory=dict)
    content: str = ""
    html: str = ""
    issues: List[MarkdownIssue] = field(default_factory=list)

    @property
    def errors(self) -> List[MarkdownIssue]:
        return [issue for issue in self.issues if issue.type == "error"]

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict:
        return {
            "frontmatter": {key: _jsonable(value) for key, value in self.metadata.items()},
            "content": self.content,
            "html": self.html,
            "issues": [issue.to_dict() for issue in self.issues],
            "valid": self.is_valid,
        }


def _jsonable(value):
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


def render_markdown(text: Optional[str]) -> str:
    """Markdown to HTML with fenced code, tables and single-newline breaks"""
    if not text:
        return ""
    return markdown.markdown(text, extensions=MD_EXTENSIONS)


def validate_frontmatter(metadata: dict, default_author: str = "") -> List[MarkdownIssue]:
    """
    Check imported frontmatter before anything is sent to the backend.

    Errors block the import; warnings are informational.
    """
    errors = []
    warnings = []

    if not str(metadata.get("title") or "").strip():
        errors.append("Title is required")

    if not metadata.get("excerpt"):
        warnings.append("Excerpt is recommended for better SEO")
    if not isinstance(metadata.get("tags"), list):
        warnings.append("Tags array is recommended")
    if not metadata.get("author"):
        warnings.append(f'Author will default to "{default_author}"' if default_author else "Author is recommended")

    published_at = metadata.get("publishedAt")
    if published_at:
        # YAML turns an unquoted 2024-01-31 into a date
        if isinstance(published_at, date) and not isinstance(published_at, datetime):
            published_at = published_at.isoformat()
        if not DATE_PATTERN.match(str(published_at)):
            errors.append("publishedAt should be in YYYY-MM-DD format")

    slug = metadata.get("slug")
    if slug and not SLUG_PATTERN.match(str(slug)):
        errors.append("Slug should contain only lowercase letters, numbers, and hyphens")

    return [MarkdownIssue("error", e) for e in errors] + [MarkdownIssue("warning", w) for w in warnings]


def parse_document(text: str, default_author: str = "") -> MarkdownDocument:
    """Split frontmatter from body, render the body and validate the frontmatter"""
    try:
        post = frontmatter.loads(text or "")
    except (yaml.YAMLError, ValueError) as e:
        logger.warning(f"Failed to parse markdown frontmatter: {e}")
        return MarkdownDocument(
            content=text or "",
            issues=[MarkdownIssue("error", f"Failed to parse content: {e}")],
        )

    metadata = dict(post.metadata)
    return MarkdownDocument(
        metadata=metadata,
        content=post.content,
        html=render_markdown(post.content),
        issues=validate_frontmatter(metadata, default_author),
    )


def import_template(author: str, today: Optional[date] = None) -> str:
    """Downloadable starting point for a markdown import"""
    today = today or date.today()
    metadata = {
        "title": "Your Blog Post Title",
        "excerpt": "Brief description of your blog post for SEO and previews",
        "author": author,
        "publishedAt": today.isoformat(),
        "tags": ["javascript", "react", "tutorial"],
        "readingTime": "5 min read",
        "viewCount": 0,
        "featured": False,
        "slug": "your-blog-post-slug",
    }
    body = """# Your Blog Post Title

Write your blog post content here using Markdown syntax.

## Introduction

Start with an engaging introduction that hooks your readers and clearly states what they'll learn from this post.

## Section 1: Main Topic

Explain your main points with clear examples and code snippets.

### Code Examples

```javascript
const greet = (name) => `Hello, ${name}!`
```

| Column | Description |
|--------|-------------|
| One    | First item  |
| Two    | Second item |

## Conclusion

Summarize the key takeaways.

## Further Reading

- [Official Documentation](https://example.com)
"""
    return frontmatter.dumps(frontmatter.Post(body, **metadata)) + "\n"
