"""HTML 解析与清洗工具."""

import re

from bs4 import BeautifulSoup
from bs4.element import PreformattedString

# 允许保留的标签（常用排版标签 + img）
ALLOWED_TAGS = frozenset(
    {
        # 块级
        "address", "article", "aside", "footer", "header",
        "h1", "h2", "h3", "h4", "h5", "h6", "hgroup", "main", "nav", "section",
        "blockquote", "dd", "div", "dl", "dt", "figcaption", "figure", "hr",
        "li", "ol", "p", "pre", "ul",
        # 行内
        "a", "abbr", "b", "bdi", "bdo", "br", "cite", "code", "data", "dfn",
        "em", "i", "kbd", "mark", "q", "rb", "rp", "rt", "rtc", "ruby", "s",
        "samp", "small", "span", "strong", "sub", "sup", "time", "u", "var",
        "wbr",
        # 表格
        "caption", "col", "colgroup", "table", "tbody", "td", "tfoot", "th",
        "thead", "tr",
        # 图片
        "img",
    }
)  # fmt: skip

# 每个标签允许的属性，未列出的标签不保留任何属性
ALLOWED_ATTRIBUTES: dict[str, frozenset[str]] = {
    "a": frozenset({"href", "name", "target"}),
    "img": frozenset({"src", "alt", "title", "width", "height"}),
}

# 连同内容一起删除的标签
DISCARD_CONTENT_TAGS = ("script", "style", "textarea", "option", "noscript")

URL_ATTRIBUTES = frozenset({"href", "src"})
ALLOWED_SCHEMES = frozenset({"http", "https", "ftp", "mailto", "tel"})

_SCHEME_RE = re.compile(r"^([a-z][a-z0-9.+\-]*):")
_CONTROL_RE = re.compile(r"[\x00-\x20\x7f]+")


def _is_safe_url(value: str) -> bool:
    """URL 协议是否在白名单内（相对地址视为安全）."""
    # 去掉控制字符和空白，避免 "java\tscript:" 之类的绕过
    normalized = _CONTROL_RE.sub("", value).lower()
    if normalized.startswith("//"):
        return True

    match = _SCHEME_RE.match(normalized)
    if not match:
        return True
    return match.group(1) in ALLOWED_SCHEMES


def sanitize_html(html: str) -> str:
    """
    按白名单清洗富文本 HTML.

    不在白名单的标签会被拆掉（保留文本和合法的子节点），
    script/style 等标签连同内容一起删除，属性只保留白名单中的条目。

    Args:
        html: 用户提交的 HTML

    Returns:
        清洗后的 HTML
    """
    if not html:
        return ""

    soup = BeautifulSoup(html, "html.parser")

    # 注释、doctype、CDATA、处理指令
    for node in soup.find_all(string=lambda s: isinstance(s, PreformattedString)):
        node.extract()

    for tag in soup.find_all(DISCARD_CONTENT_TAGS):
        if not tag.decomposed:
            tag.decompose()

    for tag in soup.find_all(True):
        if tag.name not in ALLOWED_TAGS:
            tag.unwrap()
            continue

        allowed = ALLOWED_ATTRIBUTES.get(tag.name, frozenset())
        attrs: dict[str, str] = {}
        for name, value in tag.attrs.items():
            if name not in allowed:
                continue
            if isinstance(value, list):
                value = " ".join(value)
            if name in URL_ATTRIBUTES and not _is_safe_url(value):
                continue
            attrs[name] = value
        tag.attrs = attrs

    return str(soup)


def html_to_text(html: str) -> str:
    """
    将 HTML 转换为纯文本.

    Args:
        html: HTML 内容

    Returns:
        提取的纯文本内容
    """
    if not html:
        return ""

    # 使用 BeautifulSoup 解析
    soup = BeautifulSoup(html, "lxml")

    # 移除 script 和 style 标签
    for element in soup(["script", "style"]):
        element.decompose()

    # 获取文本
    text = soup.get_text(separator="\n")

    # 清理多余空白
    lines = []
    for line in text.split("\n"):
        line = line.strip()
        if line:
            lines.append(line)

    text = "\n".join(lines)

    # 合并连续空行
    text = re.sub(r"\n{3,}", "\n\n", text)

    return text.strip()


def text_length(html: str) -> int:
    """去掉标签后的文本长度，用于内容长度校验."""
    return len(html_to_text(html))
