"""Site footer markup."""
from datetime import datetime
from html import escape

from src.config import DEFAULT_CONFIG

FOOTER_STYLE = """
        a {
          float: right;
        }
        @media screen and (max-width: 480px) {
          article {
            padding-top: 2rem;
            padding-bottom: 4rem;
          }
        }"""


def render_footer(config: dict | None = None, year: int | None = None) -> str:
    """Render the page footer: copyright year, RSS link and contact links."""
    footer = (config or DEFAULT_CONFIG)["footer"]
    year = year or datetime.now().year
    author = escape(footer["author"])
    email = escape(footer["email"])

    return f"""<small style="display: block; margin-top: 8rem">
  <time>{year}</time> © {author}
  <a href="{escape(footer['feed_link'])}">RSS</a>

  <div>
    <a href="{escape(footer['twitter'])}">Twitter</a><br />
    <a href="{escape(footer['github'])}">GitHub</a><br />
    <a href="mailto:{email}">{email}</a>
  </div>

  <style>{FOOTER_STYLE}
  </style>
</small>
"""
