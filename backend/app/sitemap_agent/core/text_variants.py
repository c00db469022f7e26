"""
Text Variants

Bilingual (Korean/English) keyword dictionary used to expand a
natural-language element description into alternative captions, plus
keyword-triggered structural selector templates.
"""

import re
from typing import Dict, List

# Korean keyword -> captions it may appear as on screen
KEYWORD_VARIANTS: Dict[str, List[str]] = {
    # Authentication
    "로그인": ["Login", "Sign In", "로그인", "입장"],
    "로그아웃": ["Logout", "Sign Out", "로그아웃", "나가기"],

    # CRUD actions
    "생성": ["Create", "Add", "New", "생성", "추가", "만들기"],
    "수정": ["Edit", "Update", "Modify", "수정", "편집", "변경"],
    "삭제": ["Delete", "Remove", "삭제", "제거", "지우기"],
    "저장": ["Save", "Submit", "저장", "제출", "확인"],
    "취소": ["Cancel", "취소", "닫기"],

    # Fields
    "이메일": ["Email", "E-mail", "이메일", "메일"],
    "비밀번호": ["Password", "비밀번호", "패스워드"],
    "이름": ["Name", "이름", "성함"],

    # Domain
    "회원": ["Member", "User", "회원", "사용자"],
    "관리자": ["Admin", "Administrator", "관리자"],
}

# Reverse lookup: English caption -> Korean keyword
ENGLISH_TO_KEYWORD: Dict[str, str] = {}
for keyword, captions in KEYWORD_VARIANTS.items():
    for caption in captions:
        if caption.isascii():
            ENGLISH_TO_KEYWORD.setdefault(caption.lower(), keyword)

BUTTON_KEYWORDS = ["버튼", "button", "생성", "저장", "삭제", "취소"]
INPUT_KEYWORDS = ["입력", "필드", "input", "이메일", "비밀번호", "email", "password"]
LINK_KEYWORDS = ["링크", "메뉴", "link", "menu"]
TABLE_KEYWORDS = ["테이블", "목록", "리스트", "table", "list"]


def css_string(value: str) -> str:
    """Quote a value for use inside a CSS attribute or :has-text() selector"""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def slugify(description: str) -> str:
    """Lowercase and replace whitespace runs with hyphens"""
    return re.sub(r"\s+", "-", description.strip().lower())


def _dedupe(values: List[str]) -> List[str]:
    seen = set()
    result = []
    for value in values:
        if value and value not in seen:
            seen.add(value)
            result.append(value)
    return result


def generate_text_variants(description: str) -> List[str]:
    """
    Expand a description into candidate captions.

    The description itself always comes first. Each Korean keyword it
    contains contributes the description with the keyword replaced by
    every caption, and each caption on its own. English captions
    (matched as whole words) pull in their keyword's captions the same
    way. Order is stable and duplicates are dropped.
    """
    variants = [description]

    for keyword, captions in KEYWORD_VARIANTS.items():
        if keyword in description:
            for caption in captions:
                variants.append(description.replace(keyword, caption))
                variants.append(caption)

    lowered = description.lower()
    for english, keyword in ENGLISH_TO_KEYWORD.items():
        if re.search(rf"\b{re.escape(english)}\b", lowered):
            for caption in KEYWORD_VARIANTS[keyword]:
                variants.append(caption)

    return _dedupe(variants)


def _mentions(description: str, keywords: List[str]) -> bool:
    lowered = description.lower()
    return any(keyword in lowered for keyword in keywords)


def structural_selectors(description: str) -> List[str]:
    """
    Selector templates triggered by keywords in the description.

    Returns an empty list when no keyword family applies.
    """
    quoted = css_string(description)
    selectors: List[str] = []

    if _mentions(description, BUTTON_KEYWORDS):
        selectors.append(f"button:has-text({quoted})")
        translated = [v for v in generate_text_variants(description)[1:] if v != description]
        if translated:
            selectors.append(f"button:has-text({css_string(translated[0])})")
        selectors.append(f"[role=\"button\"]:has-text({quoted})")
        selectors.append(f"input[type=\"submit\"][value*={quoted} i]")

    if _mentions(description, INPUT_KEYWORDS):
        selectors.extend([
            "input[type=\"text\"]",
            "input[type=\"email\"]",
            "input[type=\"password\"]",
            f"input[name*={quoted} i]",
            f"textarea[name*={quoted} i]",
        ])

    if _mentions(description, LINK_KEYWORDS):
        selectors.extend([
            f"a:has-text({quoted})",
            f"a[href*={quoted} i]",
            f"nav a:has-text({quoted})",
        ])

    if _mentions(description, TABLE_KEYWORDS):
        selectors.extend(["table", ".table", "[role=\"table\"]", "tbody tr"])

    return _dedupe(selectors)
