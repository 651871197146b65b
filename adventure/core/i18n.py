from typing import Dict

TEXTS: Dict[str, Dict[str, str]] = {
    "title": {"en": "Infinite Adventure", "ko": "무한 모험"},
    "begin_prompt": {
        "en": "Start a new fantasy adventure game for me. Begin in an enchanted forest.",
        "ko": "새로운 판타지 모험 게임을 시작해 주세요. 마법에 걸린 숲에서 시작합니다.",
    },
    "fallback_story": {
        "en": "The winds of fate are howling, but the path is unclear. The connection to the aether is weak. Please try making a choice again.",
        "ko": "운명의 바람이 울부짖고 있지만, 길은 불분명합니다. 에테르와의 연결이 약합니다. 다시 한번 선택해 주세요.",
    },
    "fallback_choice_listen": {"en": "Try to listen to the winds again.", "ko": "다시 바람의 소리에 귀 기울여 본다."},
    "fallback_choice_path": {"en": "Look for a different path.", "ko": "다른 길을 찾아본다."},
    "fallback_quest": {"en": "Reconnect with your destiny.", "ko": "운명과 다시 연결하세요."},
    "turn_error": {
        "en": "Something went wrong while weaving the story. Choose again or start a new game.",
        "ko": "이야기를 엮는 중 문제가 발생했습니다. 다시 선택하거나 새 게임을 시작하세요.",
    },
    "image_error": {
        "en": "The vision of this scene could not be painted.",
        "ko": "이 장면의 모습을 그려낼 수 없었습니다.",
    },
    "quest": {"en": "Quest", "ko": "퀘스트"},
    "inventory": {"en": "Inventory", "ko": "인벤토리"},
    "empty_inventory": {"en": "Your inventory is empty.", "ko": "인벤토리가 비어있습니다."},
    "settings": {"en": "Settings", "ko": "설정"},
    "language": {"en": "Language", "ko": "언어"},
    "story_model": {"en": "Story model", "ko": "스토리 모델"},
    "image_model": {"en": "Image model", "ko": "이미지 모델"},
    "new_game": {"en": "New game", "ko": "새 게임"},
    "loading": {"en": "The story unfolds...", "ko": "이야기가 펼쳐지는 중..."},
    "image_loading": {"en": "Painting the scene...", "ko": "장면을 그리는 중..."},
    "custom_action": {"en": "Or describe your own action", "ko": "또는 직접 행동을 입력하세요"},
    "option_en": {"en": "English", "ko": "English"},
    "option_ko": {"en": "한국어", "ko": "한국어"},
    "option_fast": {"en": "Fast", "ko": "빠름"},
    "option_deep": {"en": "Deep", "ko": "깊이"},
    "option_quality": {"en": "Quality", "ko": "고품질"},
}


def t(key: str, lang: str) -> str:
    table = TEXTS.get(key, {})
    return table.get(lang) or table.get("en") or key
