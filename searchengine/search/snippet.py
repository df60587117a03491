"""
Заголовок и сниппет страницы для поисковой выдачи
"""
import re
from typing import Iterable

TITLE = re.compile(r"<title>(.*?)</title>", re.IGNORECASE | re.DOTALL)
TAG = re.compile(r"<[^>]+>")


def collapse_whitespace(text: str) -> str:
    return " ".join(text.split())


def extract_title(html: str) -> str:
    """Текст между первыми <title> и </title>, "" если заголовка нет"""
    match = TITLE.search(html or "")
    if not match:
        return ""
    return collapse_whitespace(match.group(1))


def strip_tags(html: str) -> str:
    """Удаление HTML тегов и лишних пробелов"""
    return collapse_whitespace(TAG.sub(" ", html or ""))


def make_snippet(
    html: str,
    lemmas: Iterable[str],
    source_length: int = 1000,
    length: int = 200
) -> str:
    """
    Сниппет страницы

    1. Удаляем теги, схлопываем пробелы
    2. Берём первые source_length символов
    3. Выделяем вхождения лемм запроса тегом <b>
    4. Обрезаем до length символов с многоточием, не разрывая теги
    """
    text = strip_tags(html)[:source_length]

    for lemma in lemmas:
        text = re.sub(
            rf"\b{re.escape(lemma)}\b",
            lambda m: f"<b>{m.group(0)}</b>",
            text,
            flags=re.IGNORECASE,
        )

    if len(text) > length:
        return _cut(text, length) + "..."
    return text


def _cut(text: str, length: int) -> str:
    """Обрезка без разорванных и незакрытых тегов <b>"""
    cut = text[:length]

    tag_start = cut.rfind("<")
    if tag_start > cut.rfind(">"):
        cut = cut[:tag_start]

    if cut.count("<b>") > cut.count("</b>"):
        cut += "</b>"
    return cut
