"""SVG stat-card renderer."""

from __future__ import annotations

import re
from collections.abc import Sequence

from .errors import UnknownLocaleError
from .models import CardOptions, Rank, ScoredRepositoryEntry
from .themes import CardColors, Color, get_card_colors

CARD_WIDTH = 495
ROW_SPACING = 8
NAME_FONT_SIZE = 18

TRANSLATIONS = {
    "statcard.title": {
        "en": "{name}'{apostrophe} Contributor Stats",
        "ko": "{name}의 기여 통계",
        "ja": "{name}のコントリビューター統計",
        "cn": "{name} 的贡献统计",
        "de": "{name}'{apostrophe} Beitragsstatistiken",
    },
    "statcard.repository": {
        "en": "Repository",
        "ko": "저장소",
        "ja": "リポジトリ",
        "cn": "仓库",
        "de": "Repository",
    },
}

AVAILABLE_LOCALES = frozenset(TRANSLATIONS["statcard.title"])

# Average advance widths of Verdana glyphs for codepoints < 128, in ems.
# fmt: off
_CHAR_WIDTHS = [
    0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0,
    0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0,
    0, 0, 0, 0, 0.2796875, 0.2765625,
    0.3546875, 0.5546875, 0.5546875, 0.8890625, 0.665625, 0.190625,
    0.3328125, 0.3328125, 0.3890625, 0.5828125, 0.2765625, 0.3328125,
    0.2765625, 0.3015625, 0.5546875, 0.5546875, 0.5546875, 0.5546875,
    0.5546875, 0.5546875, 0.5546875, 0.5546875, 0.5546875, 0.5546875,
    0.2765625, 0.2765625, 0.584375, 0.5828125, 0.584375, 0.5546875,
    1.0140625, 0.665625, 0.665625, 0.721875, 0.721875, 0.665625,
    0.609375, 0.7765625, 0.721875, 0.2765625, 0.5, 0.665625,
    0.5546875, 0.8328125, 0.721875, 0.7765625, 0.665625, 0.7765625,
    0.721875, 0.665625, 0.609375, 0.721875, 0.665625, 0.94375,
    0.665625, 0.665625, 0.609375, 0.2765625, 0.3546875, 0.2765625,
    0.4765625, 0.5546875, 0.3328125, 0.5546875, 0.5546875, 0.5,
    0.5546875, 0.5546875, 0.2765625, 0.5546875, 0.5546875, 0.221875,
    0.240625, 0.5, 0.221875, 0.8328125, 0.5546875, 0.5546875,
    0.5546875, 0.5546875, 0.3328125, 0.5, 0.2765625, 0.5546875,
    0.5, 0.721875, 0.5, 0.5, 0.5, 0.3546875, 0.259375, 0.353125, 0.5890625,
]
# fmt: on
_AVG_CHAR_WIDTH = 0.5279276315789471

_ENCODE_RE = re.compile(r"[\u00A0-\u9999<>&](?!#)")

GITHUB_ICON = (
    '<path fill-rule="evenodd" d="M12 0a12 12 0 1 0 0 24 12 12 0 0 0 0-24zm3.163 21.783h-.093'
    "a.513.513 0 0 1-.382-.14.513.513 0 0 1-.14-.372v-1.406c.006-.467.01-.94.01-1.416a3.693 3.693 0 0 0"
    "-.151-1.028 1.832 1.832 0 0 0-.542-.875 8.014 8.014 0 0 0 2.038-.471 4.051 4.051 0 0 0 1.466-.964"
    "c.407-.427.71-.943.885-1.506a6.77 6.77 0 0 0 .3-2.13 4.138 4.138 0 0 0-.26-1.476 3.892 3.892 0 0 0"
    "-.795-1.284 2.81 2.81 0 0 0 .162-.582c.033-.2.05-.402.05-.604 0-.26-.03-.52-.09-.773a5.309 5.309 0 0 0"
    "-.221-.763.293.293 0 0 0-.111-.02h-.11c-.23.002-.456.04-.674.111a5.34 5.34 0 0 0-.703.26 6.503 6.503 0 0 0"
    "-.661.343c-.215.127-.405.249-.573.362a9.578 9.578 0 0 0-5.143 0 13.507 13.507 0 0 0-.572-.362"
    " 6.022 6.022 0 0 0-.672-.342 4.516 4.516 0 0 0-.705-.261 2.203 2.203 0 0 0-.662-.111h-.11a.29.29 0 0 0"
    "-.11.02 5.844 5.844 0 0 0-.23.763c-.054.254-.08.513-.081.773 0 .202.017.404.051.604.033.199.086.394.16.582"
    "A3.888 3.888 0 0 0 5.702 10a4.142 4.142 0 0 0-.263 1.476 6.871 6.871 0 0 0 .292 2.12c.181.563.483 1.08.884"
    " 1.516.415.422.915.75 1.466.964.653.25 1.337.41 2.033.476a1.828 1.828 0 0 0-.452.633 2.99 2.99 0 0 0"
    "-.2.744 2.754 2.754 0 0 1-1.175.27 1.788 1.788 0 0 1-1.065-.3 2.904 2.904 0 0 1-.752-.824 3.1 3.1 0 0 0"
    "-.292-.382 2.693 2.693 0 0 0-.372-.343 1.841 1.841 0 0 0-.432-.24 1.2 1.2 0 0 0-.481-.101c-.04.001-.08.005"
    "-.12.01a.649.649 0 0 0-.162.02.408.408 0 0 0-.13.06.116.116 0 0 0-.06.1.33.33 0 0 0 .14.242c.093.074.17.131"
    ".232.171l.03.021c.133.103.261.214.382.333.112.098.213.209.3.33.09.119.168.246.231.381.073.134.15.288.231.463"
    ".188.474.522.875.954 1.145.453.243.961.364 1.476.351.174 0 .349-.01.522-.03.172-.028.343-.057.515-.091v1.743"
    'a.5.5 0 0 1-.533.521h-.062a10.286 10.286 0 1 1 6.324 0v.005z"/>'
)

PULL_REQUEST_ICON = (
    '<path fill-rule="evenodd" clip-rule="evenodd" d="M14.7071 2.70711L13.4142 4H14C17.3137 4 20 6.68629'
    " 20 10V16.1707C21.1652 16.5825 22 17.6938 22 19C22 20.6569 20.6569 22 19 22C17.3431 22 16 20.6569 16 19"
    "C16 17.6938 16.8348 16.5825 18 16.1707V10C18 7.79086 16.2091 6 14 6H13.4142L14.7071 7.29289C15.0976"
    " 7.68342 15.0976 8.31658 14.7071 8.70711C14.3166 9.09763 13.6834 9.09763 13.2929 8.70711L10.2929"
    " 5.70711C9.90237 5.31658 9.90237 4.68342 10.2929 4.29289L13.2929 1.29289C13.6834 0.902369 14.3166"
    " 0.902369 14.7071 1.29289C15.0976 1.68342 15.0976 2.31658 14.7071 2.70711ZM18 19C18 18.4477 18.4477 18"
    " 19 18C19.5523 18 20 18.4477 20 19C20 19.5523 19.5523 20 19 20C18.4477 20 18 19.5523 18 19ZM6 4C5.44772"
    " 4 5 4.44772 5 5C5 5.55228 5.44772 6 6 6C6.55228 6 7 5.55228 7 5C7 4.44772 6.55228 4 6 4ZM7 7.82929"
    "C8.16519 7.41746 9 6.30622 9 5C9 3.34315 7.65685 2 6 2C4.34315 2 3 3.34315 3 5C3 6.30622 3.83481"
    " 7.41746 5 7.82929V16.1707C3.83481 16.5825 3 17.6938 3 19C3 20.6569 4.34315 22 6 22C7.65685 22 9"
    " 20.6569 9 19C9 17.6938 8.16519 16.5825 7 16.1707V7.82929ZM6 18C5.44772 18 5 18.4477 5 19C5 19.5523"
    ' 5.44772 20 6 20C6.55228 20 7 19.5523 7 19C7 18.4477 6.55228 18 6 18Z"/>'
)

STAR_ICON = (
    '<path d="M11.2691 4.41115C11.5006 3.89177 11.6164 3.63208 11.7776 3.55211C11.9176 3.48263 12.082'
    " 3.48263 12.222 3.55211C12.3832 3.63208 12.499 3.89177 12.7305 4.41115L14.5745 8.54808C14.643 8.70162"
    " 14.6772 8.77839 14.7302 8.83718C14.777 8.8892 14.8343 8.93081 14.8982 8.95929C14.9705 8.99149 15.0541"
    " 9.00031 15.2213 9.01795L19.7256 9.49336C20.2911 9.55304 20.5738 9.58288 20.6997 9.71147C20.809 9.82316"
    " 20.8598 9.97956 20.837 10.1342C20.8108 10.3122 20.5996 10.5025 20.1772 10.8832L16.8125 13.9154"
    "C16.6877 14.0279 16.6252 14.0842 16.5857 14.1527C16.5507 14.2134 16.5288 14.2807 16.5215 14.3503"
    "C16.5132 14.429 16.5306 14.5112 16.5655 14.6757L17.5053 19.1064C17.6233 19.6627 17.6823 19.9408"
    " 17.5989 20.1002C17.5264 20.2388 17.3934 20.3354 17.2393 20.3615C17.0619 20.3915 16.8156 20.2495"
    " 16.323 19.9654L12.3995 17.7024C12.2539 17.6184 12.1811 17.5765 12.1037 17.56C12.0352 17.5455"
    " 11.9644 17.5455 11.8959 17.56C11.8185 17.5765 11.7457 17.6184 11.6001 17.7024L7.67662 19.9654"
    "C7.18404 20.2495 6.93775 20.3915 6.76034 20.3615C6.60623 20.3354 6.47319 20.2388 6.40075 20.1002"
    "C6.31736 19.9408 6.37635 19.6627 6.49434 19.1064L7.4341 14.6757C7.46898 14.5112 7.48642 14.429"
    " 7.47814 14.3503C7.47081 14.2807 7.44894 14.2134 7.41394 14.1527C7.37439 14.0842 7.31195 14.0279"
    " 7.18708 13.9154L3.82246 10.8832C3.40005 10.5025 3.18884 10.3122 3.16258 10.1342C3.13978 9.97956"
    " 3.19059 9.82316 3.29993 9.71147C3.42581 9.58288 3.70856 9.55304 4.27406 9.49336L8.77835 9.01795"
    "C8.94553 9.00031 9.02911 8.99149 9.10139 8.95929C9.16534 8.93081 9.2226 8.8892 9.26946 8.83718"
    "C9.32241 8.77839 9.35663 8.70162 9.42508 8.54808L11.2691 4.41115Z\""
    ' stroke-width="2" stroke-linecap="round" stroke-linejoin="round"/>'
)


def encode_html(text: str) -> str:
    encoded = _ENCODE_RE.sub(lambda m: f"&#{ord(m.group(0))};", text)
    return encoded.replace("\b", "")


def measure_text(text: str, font_size: float = 10) -> float:
    return sum(
        _CHAR_WIDTHS[ord(c)] if ord(c) < len(_CHAR_WIDTHS) else _AVG_CHAR_WIDTH for c in text
    ) * font_size


def clamp(value: float, minimum: float, maximum: float) -> float:
    return max(minimum, min(value, maximum))


def _fmt(value: float) -> str:
    return f"{value:g}"


def flex_layout(
    items: Sequence[str],
    gap: float,
    direction: str = "row",
    sizes: Sequence[float] = (),
) -> list[str]:
    """Wrap each non-empty item in a ``<g>`` translated along *direction*."""
    laid_out = []
    last_size = 0.0
    for i, item in enumerate(filter(None, items)):
        size = sizes[i] if i < len(sizes) else 0
        if direction == "column":
            transform = f"translate(0, {_fmt(last_size)})"
        else:
            transform = f"translate({_fmt(last_size)}, 0)"
        last_size += size + gap
        laid_out.append(f'<g transform="{transform}">{item}</g>')
    return laid_out


def translate(key: str, locale: str | None, **values: str) -> str:
    table = TRANSLATIONS[key]
    template = table.get(locale or "en", table["en"])
    return template.format(**values)


def _paint(color: Color) -> str:
    return color if isinstance(color, str) else "url(#gradient)"


def get_styles(colors: CardColors) -> str:
    return f"""
    .stat {{
      font: 600 14px 'Segoe UI', Ubuntu, "Helvetica Neue", Sans-Serif; fill: {_paint(colors.text_color)};
    }}
    @supports(-moz-appearance: auto) {{
      .stat {{ font-size:12px; }}
    }}
    .stagger {{
      opacity: 0;
      animation: fadeInAnimation 0.3s ease-in-out forwards;
    }}
    .rank-text {{
      font: 800 14px 'Segoe UI', Ubuntu, Sans-Serif; fill: {_paint(colors.text_color)};
      animation: scaleInAnimation 0.3s ease-in-out forwards;
    }}
    .bold {{ font-weight: 700 }}
    .icon {{
      fill: {_paint(colors.icon_color)};
      display: block;
    }}
    .rank-circle-rim {{
      stroke: {_paint(colors.title_color)};
      fill: none;
      stroke-width: 2;
      opacity: 0.2;
    }}
    """


ANIMATIONS = """
    @keyframes scaleInAnimation {
      from { transform: translate(-5px, 5px) scale(0); }
      to { transform: translate(-5px, 5px) scale(1); }
    }
    @keyframes fadeInAnimation {
      from { opacity: 0; }
      to { opacity: 1; }
    }
"""


def _rank_circle(offset: float, rank: Rank) -> str:
    label = str(rank)
    x = "4" if "+" in label else "7.2"
    return f"""
    <g data-testid="rank-circle" transform="translate({_fmt(offset)}, 0)">
      <circle class="rank-circle-rim" cx="12.5" cy="12.5" r="14" />
      <g class="rank-text"><text x="{x}" y="18.5">{label}</text></g>
    </g>"""


def rank_offset(name: str) -> float:
    offset = clamp(measure_text(name, NAME_FONT_SIZE), 230, 400)
    return offset + (5 if offset == 230 else 15)


def create_text_node(entry: ScoredRepositoryEntry, image: str, index: int) -> str:
    stagger_delay = (index + 3) * 150
    offset = rank_offset(entry.name)
    if entry.contribution_rank is None:
        rank_items = _rank_circle(offset, entry.rank)
    else:
        rank_items = _rank_circle(offset, entry.contribution_rank) + _rank_circle(
            offset + 50, entry.rank
        )
    return f"""
    <g class="stagger" style="animation-delay: {stagger_delay}ms" transform="translate(25, 0)">
      <defs>
        <clipPath id="myCircle">
          <circle cx="12.5" cy="12.5" r="12.5" fill="#FFFFFF" />
        </clipPath>
      </defs>
      <image xlink:href="{image}" width="25" height="25" clip-path="url(#myCircle)"/>
      <g transform="translate(30,16)">
        <text class="stat bold">{encode_html(entry.name)}</text>
      </g>
      {rank_items}
    </g>"""


class Card:
    def __init__(
        self,
        width: int = 100,
        height: int = 100,
        border_radius: float = 4.5,
        colors: CardColors | None = None,
        custom_title: str | None = None,
        default_title: str = "",
        repository_title: str = "Repository",
    ) -> None:
        self.width = width
        self.height = height
        self.border_radius = border_radius
        self.colors = colors or get_card_colors()
        self.title = encode_html(custom_title if custom_title is not None else default_title)
        self.repository_title = encode_html(repository_title)
        self.hide_border = False
        self.hide_title = False
        self.hide_contributor_rank = False
        self.animations = True
        self.css = ""
        self.padding_x = 25
        self.padding_y = 35
        self.a11y_title = ""
        self.a11y_desc = ""

    def set_hide_title(self, value: bool) -> None:
        self.hide_title = value
        if value:
            self.height -= 30

    def render_title(self) -> str:
        title = f'<text x="0" y="0" class="header" data-testid="header">{self.title}</text>'
        return f"""
      <g data-testid="card-title" transform="translate({self.padding_x}, {self.padding_y})">
        {"".join(flex_layout([title], gap=25))}
      </g>"""

    def render_sub_title(self) -> str:
        repo_title = (
            f'<text x="0" y="5" class="sub-title-header" data-testid="header">'
            f"{self.repository_title}</text>"
        )

        def icon(path: str) -> str:
            return (
                '<svg class="icon" x="0" y="-13" viewBox="0 0 24 24" version="1.1" '
                f'width="24" height="24">{path}</svg>'
            )

        right_icons = [
            "" if self.hide_contributor_rank else icon(PULL_REQUEST_ICON),
            icon(STAR_ICON),
        ]
        return f"""
      <g data-testid="card-title" transform="translate({self.padding_x}, {self.padding_y + 30})">
        {"".join(flex_layout([icon(GITHUB_ICON), repo_title], gap=30))}
      </g>
      <g data-testid="card-title" transform="translate({self.padding_x + 235}, {self.padding_y + 30})">
        {"".join(flex_layout(right_icons, gap=50))}
      </g>"""

    def render_gradient(self) -> str:
        if isinstance(self.colors.bg_color, str):
            return ""
        angle, *stops = self.colors.bg_color
        stop_tags = "".join(
            f'<stop offset="{_fmt(i * 100 / (len(stops) - 1))}%" stop-color="#{stop}" />'
            for i, stop in enumerate(stops)
        )
        return f"""
      <defs>
        <linearGradient id="gradient" gradientTransform="rotate({angle})" gradientUnits="userSpaceOnUse">
          {stop_tags}
        </linearGradient>
      </defs>"""

    def render(self, body: str) -> str:
        no_animations = (
            "* { animation-duration: 0s !important; animation-delay: 0s !important; }"
            if not self.animations
            else ""
        )
        body_offset = self.padding_x if self.hide_title else self.padding_y + 20 + 30
        header = "" if self.hide_title else self.render_title() + self.render_sub_title()
        return f"""<svg
  width="{self.width}"
  height="{self.height}"
  viewBox="0 0 {self.width} {self.height}"
  fill="none"
  xmlns="http://www.w3.org/2000/svg"
  xmlns:xlink="http://www.w3.org/1999/xlink"
  role="img"
  aria-labelledby="descId"
>
  <title id="titleId">{self.a11y_title}</title>
  <desc id="descId">{self.a11y_desc}</desc>
  <style>
    .header {{
      font: 600 18px 'Segoe UI', Ubuntu, Sans-Serif;
      fill: {_paint(self.colors.title_color)};
      animation: fadeInAnimation 0.8s ease-in-out forwards;
    }}
    .sub-title-header {{
      font: 800 14px 'Segoe UI', Ubuntu, Sans-Serif;
      fill: {_paint(self.colors.title_color)};
      animation: fadeInAnimation 0.8s ease-in-out forwards;
    }}
    @supports(-moz-appearance: auto) {{
      .header {{ font-size: 15.5px; }}
    }}
    {self.css}
    {ANIMATIONS}
    {no_animations}
  </style>
  {self.render_gradient()}
  <rect
    data-testid="card-bg"
    x="0.5"
    y="0.5"
    rx="{_fmt(self.border_radius)}"
    height="99%"
    stroke="{_paint(self.colors.border_color)}"
    width="{self.width - 1}"
    fill="{_paint(self.colors.bg_color)}"
    stroke-opacity="{0 if self.hide_border else 1}"
  />
  {header}
  <g data-testid="main-card-body" transform="translate(0, {body_offset})">
    {body}
  </g>
</svg>
"""


def card_height(rows: int, line_height: int) -> int:
    return max(30 + 45 + (rows + 1) * (line_height + ROW_SPACING), 150)


def render_stats_card(
    name: str,
    entries: Sequence[ScoredRepositoryEntry],
    images: Sequence[str] | None = None,
    options: CardOptions | None = None,
    hide_contributor_rank: bool = True,
) -> str:
    """Render scored entries as the final SVG card.

    *images* holds one embedded image per entry (data URIs); entries without
    one fall back to their ``image_reference``.
    """
    options = options or CardOptions()
    if options.locale and options.locale not in AVAILABLE_LOCALES:
        raise UnknownLocaleError(options.locale)
    images = list(images or [])

    colors = get_card_colors(
        title_color=options.title_color,
        text_color=options.text_color,
        icon_color=options.icon_color,
        bg_color=options.bg_color,
        border_color=options.border_color,
        theme=options.theme,
    )
    apostrophe = "" if name[-1:].lower() in ("x", "s") else "s"

    rows = [
        create_text_node(entry, images[i] if i < len(images) else entry.image_reference, i)
        for i, entry in enumerate(entries)
    ]
    line_height = options.line_height

    card = Card(
        width=CARD_WIDTH,
        height=card_height(len(rows), line_height),
        border_radius=options.border_radius,
        colors=colors,
        custom_title=options.custom_title,
        default_title=translate("statcard.title", options.locale, name=name, apostrophe=apostrophe),
        repository_title=translate("statcard.repository", options.locale),
    )
    card.hide_contributor_rank = hide_contributor_rank
    card.hide_border = options.hide_border
    card.set_hide_title(options.hide_title)
    card.animations = not options.disable_animations
    card.css = get_styles(colors)
    card.a11y_title = card.title
    card.a11y_desc = ", ".join(
        f"{e.name}: {e.rank}" + (f" ({e.contribution_rank})" if e.contribution_rank else "")
        for e in entries
    )

    body = "".join(flex_layout(rows, gap=line_height + ROW_SPACING, direction="column"))
    return card.render(f'<svg overflow="visible">{body}</svg>')


def render_error(message: str, secondary_message: str = "") -> str:
    return f"""<svg width="495" height="120" viewBox="0 0 495 120" fill="none" xmlns="http://www.w3.org/2000/svg">
  <style>
    .text {{ font: 600 16px 'Segoe UI', Ubuntu, Sans-Serif; fill: #2F80ED }}
    .small {{ font: 600 12px 'Segoe UI', Ubuntu, Sans-Serif; fill: #252525 }}
    .gray {{ fill: #858585 }}
  </style>
  <rect x="0.5" y="0.5" width="494" height="99%" rx="4.5" fill="#FFFEFE" stroke="#E4E2E2"/>
  <text x="25" y="45" class="text">Something went wrong!</text>
  <text data-testid="message" x="25" y="55" class="text small">
    <tspan x="25" dy="18">{encode_html(message)}</tspan>
    <tspan x="25" dy="18" class="gray">{encode_html(secondary_message)}</tspan>
  </text>
</svg>
"""
