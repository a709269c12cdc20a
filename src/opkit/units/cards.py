"""Default card markup for compound units."""

from html import escape

CARD_CSS = """\
.card {
  display: block;
  padding: 1rem;
  border: 1px solid #d0d7de;
  border-radius: 0.5rem;
  color: inherit;
  text-decoration: none;
}
.card:hover { border-color: #0969da; }
.card__header { display: flex; justify-content: space-between; }
.card__extension-name { font-size: 0.75rem; color: #57606a; text-transform: uppercase; }
.card__title { margin-top: 0.5rem; font-weight: 600; }
.card__description { margin-top: 0.25rem; color: #57606a; }
"""


def render_card(unit_name: str, title: str, description: str, href: str) -> str:
    """
    Render the default card: a link block with unit name, title and description.

    All text is HTML-escaped.
    """
    return (
        f"<style>{CARD_CSS}</style>"
        f'<a href="{escape(href, quote=True)}" class="card">'
        f'<div class="card__header">'
        f'<div class="card__extension-name">{escape(unit_name)}</div>'
        f"</div>"
        f'<div class="card__title">{escape(title)}</div>'
        f'<div class="card__description">{escape(description)}</div>'
        f"</a>"
    )
