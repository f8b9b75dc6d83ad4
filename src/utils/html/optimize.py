"""HTML 최적화 규칙 테이블과 적용 로직 (selectolax).

봇에게 보낼 HTML에서 SEO와 무관한 요소를 걷어냅니다.
이 모듈은 워커 프로세스에서 실행되므로 전역 상태를 두지 않고,
워커에 넘기는 인자는 (html, deep, compress) 원시값뿐입니다.

두 가지 단계:
- shallow: script/style/prefetch 링크/트래킹 iframe 제거만
- full: shallow + 폼/입력/미디어/아이콘/인라인 스타일 제거 + div 래퍼 평탄화
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Optional

from selectolax.parser import HTMLParser, Node

# 규칙 액션
REMOVE_ELEMENT = "remove_element"
STRIP_ATTRIBUTE = "strip_attribute"
COLLAPSE_WRAPPER = "collapse_wrapper"

_KEPT_SCRIPT_TYPES = ("application/ld+json", "application/xml", "application/rdf+xml")
_PREFETCH_RELS = {"dns-prefetch", "preconnect", "modulepreload", "preload", "prefetch"}
_STYLE_RELS = {"stylesheet", "shortcut icon", "icon"}
_TRACKING_IFRAME_RE = re.compile(r"\b(partytown|insider-worker)(-[a-z]+)?\b", re.I)
_ICON_ALT_RE = re.compile(r"\bicon(-\w+)*\b", re.I)
_KEPT_INPUT_TYPES = {"button", "submit"}

_COMMENT_RE = re.compile(r"<!--(?!\[if).*?-->", re.S)
_BETWEEN_TAGS_RE = re.compile(r">\s+<")


@dataclass(frozen=True)
class Rule:
    """최적화 규칙 한 줄

    Attributes:
        action: REMOVE_ELEMENT | STRIP_ATTRIBUTE | COLLAPSE_WRAPPER
        selector: CSS 선택자 (COLLAPSE_WRAPPER는 태그 이름)
        match: 선택된 노드 중 실제 적용 대상만 고르는 조건 (없으면 전부)
        attrs: STRIP_ATTRIBUTE에서 지울 속성 이름
    """

    action: str
    selector: str
    match: Optional[Callable[[Node], bool]] = None
    attrs: tuple[str, ...] = ()


def _attr(node: Node, name: str) -> str:
    return (node.attributes.get(name) or "").strip()


def _is_removable_script(node: Node) -> bool:
    return _attr(node, "type").lower() not in _KEPT_SCRIPT_TYPES


def _is_prefetch_link(node: Node) -> bool:
    return _attr(node, "rel").lower() in _PREFETCH_RELS


def _is_style_link(node: Node) -> bool:
    if _attr(node, "rel").lower() in _STYLE_RELS:
        return True
    href = _attr(node, "href").lower()
    return href.endswith(".css") or ".css?" in href


def _is_tracking_iframe(node: Node) -> bool:
    return bool(
        _TRACKING_IFRAME_RE.search(_attr(node, "src"))
        or _TRACKING_IFRAME_RE.search(_attr(node, "id"))
    )


def _has_no_seo_tag(node: Node) -> bool:
    return _attr(node, "seo-tag").lower() != "true"


def _is_removable_input(node: Node) -> bool:
    return _attr(node, "type").lower() not in _KEPT_INPUT_TYPES


def _has_icon_class(node: Node) -> bool:
    for token in _attr(node, "class").split():
        if token in ("icon", "material-icons") or token.startswith(("icon-", "fa-", "ri-")):
            return True
    return False


def _is_icon_image(node: Node) -> bool:
    return _has_icon_class(node) or bool(_ICON_ALT_RE.search(_attr(node, "alt")))


SHALLOW_RULES: tuple[Rule, ...] = (
    Rule(REMOVE_ELEMENT, "script", match=_is_removable_script),
    Rule(REMOVE_ELEMENT, "link[rel]", match=_is_prefetch_link),
    Rule(REMOVE_ELEMENT, "iframe", match=_is_tracking_iframe),
    Rule(REMOVE_ELEMENT, "style"),
    Rule(REMOVE_ELEMENT, "link", match=_is_style_link),
)

FULL_RULES: tuple[Rule, ...] = SHALLOW_RULES + (
    Rule(REMOVE_ELEMENT, "form"),
    Rule(REMOVE_ELEMENT, "input", match=_is_removable_input),
    Rule(REMOVE_ELEMENT, "textarea"),
    Rule(REMOVE_ELEMENT, "label[for]"),
    Rule(REMOVE_ELEMENT, "video", match=_has_no_seo_tag),
    Rule(REMOVE_ELEMENT, "audio", match=_has_no_seo_tag),
    Rule(REMOVE_ELEMENT, "svg"),
    Rule(REMOVE_ELEMENT, "span[class]", match=_has_icon_class),
    Rule(REMOVE_ELEMENT, "i[class]", match=_has_icon_class),
    Rule(REMOVE_ELEMENT, "img", match=_is_icon_image),
    Rule(STRIP_ATTRIBUTE, "[style]", attrs=("style",)),
    Rule(STRIP_ATTRIBUTE, "[class]", attrs=("class",)),
    Rule(COLLAPSE_WRAPPER, "div"),
)


def apply_rules(tree: HTMLParser, rules: tuple[Rule, ...]) -> None:
    """규칙 테이블을 순서대로 트리에 적용 (in-place)"""
    for rule in rules:
        if rule.action == COLLAPSE_WRAPPER:
            tree.unwrap_tags([rule.selector])
            continue

        nodes = tree.css(rule.selector)
        if rule.match is not None:
            nodes = [node for node in nodes if rule.match(node)]

        if rule.action == REMOVE_ELEMENT:
            # 자식부터 제거해야 이미 해제된 노드를 건드리지 않음
            for node in reversed(nodes):
                node.decompose()
        elif rule.action == STRIP_ATTRIBUTE:
            for node in nodes:
                for name in rule.attrs:
                    if name in node.attributes:
                        del node.attrs[name]
        else:
            raise ValueError(f"Unknown optimize rule action: {rule.action}")


def compress_html(html: str) -> str:
    """주석 제거 + 태그 사이 공백 압축 (조건부 주석은 유지)"""
    html = _COMMENT_RE.sub("", html)
    html = _BETWEEN_TAGS_RE.sub("> <", html)
    return html.strip()


def optimize_content(html: str, deep: bool = True, compress: bool = True) -> str:
    """HTML 최적화 (워커 진입점)

    Args:
        html: 렌더링된 전체 HTML 문서
        deep: True면 full 규칙, False면 shallow 규칙
        compress: 공백/주석 압축 여부

    Returns:
        최적화된 HTML
    """
    if not html:
        return html

    tree = HTMLParser(html)
    apply_rules(tree, FULL_RULES if deep else SHALLOW_RULES)
    result = tree.html or ""

    if compress:
        result = compress_html(result)
    return result
