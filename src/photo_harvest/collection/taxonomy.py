"""Static language and category tables used to plan a collection run.

Both tables are built once at import time into read-only structures.

A locale's ``params`` mapping answers two separate questions. Membership says
whether a source is usable for the locale at all; the value is the language
parameter to send, where ``""`` means "query without a language filter".
"""

import random
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType

# Sources that never filter by language and therefore serve every locale.
UNFILTERED_SOURCES = ("unsplash", "wikimedia", "freepik")

# Languages with good primary-source coverage; their locales are collected first.
HIGH_PRIORITY_LANGUAGES = frozenset({"en", "es", "fr", "de", "it", "pt", "ru", "zh", "ja", "ko"})
PRIMARY_SOURCE = "pixabay"

LOCATION_TERM_PROBABILITY = 0.3


@dataclass(frozen=True)
class Language:
    code: str
    name: str
    params: Mapping[str, str]

    @property
    def base(self) -> str:
        return base_language(self.code)


@dataclass(frozen=True)
class Category:
    key: str
    name: str
    keywords: Mapping[str, tuple[str, ...]]


def _language(code: str, name: str, pixabay: str, pexels: str) -> Language:
    params = {source: "" for source in UNFILTERED_SOURCES}
    if pixabay:
        params["pixabay"] = pixabay
    if pexels:
        params["pexels"] = pexels
    return Language(code=code, name=name, params=MappingProxyType(params))


# (locale, display name, pixabay `lang`, pexels `locale`); "" = source unsupported
_LANGUAGE_ROWS = [
    ("ja_JP", "Japanese", "ja", "ja-JP"),
    ("ko_KR", "Korean", "ko", "ko-KR"),
    ("fr_FR", "French", "fr", "fr-FR"),
    ("de_DE", "German", "de", "de-DE"),
    ("ar_AE", "Arabic (UAE)", "ar", ""),
    ("ar_EG", "Arabic (Egypt)", "ar", ""),
    ("ar_SA", "Arabic (Saudi)", "ar", ""),
    ("da_DK", "Danish", "da", "da-DK"),
    ("de_AT", "German (Austria)", "de", "de-DE"),
    ("de_CH", "German (Switzerland)", "de", "de-DE"),
    ("es_CL", "Spanish (Chile)", "es", "es-ES"),
    ("es_ES", "Spanish (Spain)", "es", "es-ES"),
    ("es_MX", "Spanish (Mexico)", "es", "es-ES"),
    ("es_US", "Spanish (US)", "es", "es-ES"),
    ("fi_FI", "Finnish", "fi", "fi-FI"),
    ("fr_BE", "French (Belgium)", "fr", "fr-FR"),
    ("fr_CA", "French (Canada)", "fr", "fr-FR"),
    ("fr_CH", "French (Switzerland)", "fr", "fr-FR"),
    ("he_IL", "Hebrew", "", ""),
    ("hi_IN", "Hindi", "", ""),
    ("id_ID", "Indonesian", "", "id-ID"),
    ("it_CH", "Italian (Switzerland)", "it", "it-IT"),
    ("it_IT", "Italian (Italy)", "it", "it-IT"),
    ("ms_MY", "Malay", "", ""),
    ("nl_BE", "Dutch (Belgium)", "nl", "nl-NL"),
    ("nl_NL", "Dutch (Netherlands)", "nl", "nl-NL"),
    ("no_NO", "Norwegian", "no", "nb-NO"),
    ("pl_PL", "Polish", "pl", "pl-PL"),
    ("pt_BR", "Portuguese (Brazil)", "pt", "pt-BR"),
    ("pt_PT", "Portuguese (Portugal)", "pt", "pt-BR"),
    ("ru_RU", "Russian", "ru", "ru-RU"),
    ("sv_SE", "Swedish", "sv", "sv-SE"),
    ("th_TH", "Thai", "th", "th-TH"),
    ("tr_TR", "Turkish", "tr", "tr-TR"),
    ("uk_UA", "Ukrainian", "", ""),
    ("vi_VN", "Vietnamese", "vi", "vi-VN"),
    ("zh_CN", "Chinese (Simplified)", "zh", "zh-CN"),
    ("zh_HK", "Chinese (Hong Kong)", "zh", "zh-TW"),
    ("zh_TW", "Chinese (Traditional)", "zh", "zh-TW"),
]

LANGUAGES: tuple[Language, ...] = tuple(_language(*row) for row in _LANGUAGE_ROWS)
LANGUAGES_BY_CODE: Mapping[str, Language] = MappingProxyType(
    {lang.code: lang for lang in LANGUAGES}
)

_CATEGORY_DATA: dict[str, tuple[str, dict[str, list[str]]]] = {
    "arts_illustrations": ("Arts and Illustrations", {
        "en": ["art", "painting", "drawing", "illustration", "sketch", "artwork", "design",
               "creative"],
        "es": ["arte", "pintura", "dibujo", "ilustración", "diseño", "creativo"],
        "fr": ["art", "peinture", "dessin", "illustration", "conception", "créatif"],
        "de": ["kunst", "malerei", "zeichnung", "illustration", "design", "kreativ"],
        "zh": ["艺术", "绘画", "插图", "设计", "创意"],
        "zh_TW": ["藝術", "繪畫", "插圖", "設計", "創意"],
        "ja": ["アート", "絵画", "イラスト", "デザイン", "創造"],
        "ar": ["فن", "رسم", "توضيح", "تصميم", "إبداع"],
        "ru": ["искусство", "живопись", "рисование", "иллюстрация", "дизайн"],
        "ko": ["예술", "그림", "일러스트", "디자인", "창작"],
    }),
    "daily_objects": ("Daily Objects", {
        "en": ["objects", "items", "tools", "household", "everyday", "things", "products"],
        "es": ["objetos", "artículos", "herramientas", "hogar", "cotidiano", "productos"],
        "fr": ["objets", "articles", "outils", "maison", "quotidien", "produits"],
        "de": ["objekte", "gegenstände", "werkzeuge", "haushalt", "alltag", "produkte"],
        "zh": ["物品", "工具", "家居", "日常用品", "产品"],
        "ja": ["オブジェクト", "道具", "家庭用品", "日用品", "製品"],
        "ar": ["أشياء", "أدوات", "منزل", "يومي", "منتجات"],
        "ru": ["предметы", "инструменты", "домашний", "повседневный", "продукты"],
        "ko": ["물건", "도구", "가정용품", "일상용품", "제품"],
    }),
    "documents": ("Documents", {
        "en": ["document", "paper", "form", "certificate", "letter", "text", "paperwork"],
        "es": ["documento", "papel", "formulario", "certificado", "carta", "papeleo"],
        "fr": ["document", "papier", "formulaire", "certificat", "lettre", "paperasse"],
        "de": ["dokument", "papier", "formular", "zertifikat", "brief", "unterlagen"],
        "zh": ["文档", "文件", "证书", "信件", "表格"],
        "zh_TW": ["文檔", "文件", "證書", "信件", "表格"],
        "ja": ["文書", "書類", "証明書", "手紙", "フォーム"],
        "ar": ["وثيقة", "ورقة", "شهادة", "رسالة", "استمارة"],
        "ru": ["документ", "бумага", "сертификат", "письмо", "форма"],
        "ko": ["문서", "서류", "증명서", "편지", "양식"],
    }),
    "faces_people": ("Faces and People", {
        "en": ["people", "person", "face", "portrait", "human", "family", "group"],
        "es": ["personas", "persona", "cara", "retrato", "humano", "familia", "grupo"],
        "fr": ["personnes", "personne", "visage", "portrait", "humain", "famille", "groupe"],
        "de": ["menschen", "person", "gesicht", "porträt", "mensch", "familie", "gruppe"],
        "zh": ["人", "面孔", "肖像", "家庭", "群体"],
        "ja": ["人", "顔", "肖像", "家族", "グループ"],
        "ar": ["أشخاص", "وجه", "صورة", "عائلة", "مجموعة"],
        "ru": ["люди", "человек", "лицо", "портрет", "семья", "группа"],
        "ko": ["사람", "얼굴", "초상화", "가족", "그룹"],
    }),
    "handwritten_notes": ("Handwritten Notes", {
        "en": ["handwriting", "notes", "handwritten", "writing", "manuscript", "notebook"],
        "es": ["escritura a mano", "notas", "manuscrito", "cuaderno"],
        "fr": ["écriture manuscrite", "notes", "manuscrit", "carnet"],
        "de": ["handschrift", "notizen", "handgeschrieben", "manuskript", "notizbuch"],
        "zh": ["手写", "笔记", "手稿", "笔记本"],
        "zh_TW": ["手寫", "筆記", "手稿", "筆記本"],
        "ja": ["手書き", "ノート", "手稿", "ノートブック"],
        "ar": ["خط اليد", "ملاحظات", "مخطوطة", "دفتر"],
        "ru": ["почерк", "заметки", "рукопись", "блокнот"],
        "ko": ["손글씨", "노트", "수고", "공책"],
    }),
    "indoor_environments": ("Indoor Environments", {
        "en": ["indoor", "interior", "room", "office", "home", "building", "inside"],
        "es": ["interior", "habitación", "oficina", "casa", "edificio", "dentro"],
        "fr": ["intérieur", "chambre", "bureau", "maison", "bâtiment", "dedans"],
        "de": ["innen", "zimmer", "büro", "haus", "gebäude", "drinnen"],
        "zh": ["室内", "房间", "办公室", "家", "建筑"],
        "ja": ["室内", "部屋", "オフィス", "家", "建物"],
        "ar": ["داخلي", "غرفة", "مكتب", "منزل", "مبنى"],
        "ru": ["интерьер", "комната", "офис", "дом", "здание"],
        "ko": ["실내", "방", "사무실", "집", "건물"],
    }),
    "places_landscapes": ("Places and Landscapes", {
        "en": ["landscape", "nature", "outdoor", "scenery", "place", "location", "view"],
        "es": ["paisaje", "naturaleza", "exterior", "escenario", "lugar", "ubicación"],
        "fr": ["paysage", "nature", "extérieur", "panorama", "lieu", "emplacement"],
        "de": ["landschaft", "natur", "draußen", "szenerie", "ort", "standort"],
        "zh": ["风景", "自然", "户外", "景色", "地点"],
        "ja": ["風景", "自然", "屋外", "景色", "場所"],
        "ar": ["منظر طبيعي", "طبيعة", "خارجي", "مكان", "موقع"],
        "ru": ["пейзаж", "природа", "на улице", "место", "локация"],
        "ko": ["풍경", "자연", "야외", "경치", "장소"],
    }),
    "scene_texts": ("Scene Texts", {
        "en": ["sign", "text", "writing", "words", "billboard", "street", "signage"],
        "es": ["señal", "texto", "escritura", "palabras", "cartelera", "señalización"],
        "fr": ["signe", "texte", "écriture", "mots", "panneau", "signalisation"],
        "de": ["schild", "text", "schrift", "wörter", "billboard", "beschilderung"],
        "zh": ["标志", "文字", "街道标识", "广告牌"],
        "zh_TW": ["標誌", "文字", "街道標識", "廣告牌"],
        "ja": ["看板", "テキスト", "文字", "標識", "掲示板"],
        "ar": ["علامة", "نص", "كتابة", "لافتة", "إشارة"],
        "ru": ["знак", "текст", "надпись", "вывеска", "указатель"],
        "ko": ["표지판", "텍스트", "문자", "간판", "표시"],
    }),
    "animals": ("Animals", {
        "en": ["animals", "pets", "wildlife", "cat", "dog", "bird", "nature"],
        "es": ["animales", "mascotas", "vida silvestre", "gato", "perro", "pájaro"],
        "fr": ["animaux", "animaux de compagnie", "faune", "chat", "chien", "oiseau"],
        "de": ["tiere", "haustiere", "wildtiere", "katze", "hund", "vogel"],
        "zh": ["动物", "宠物", "野生动物", "猫", "狗", "鸟"],
        "ja": ["動物", "ペット", "野生動物", "猫", "犬", "鳥"],
        "ar": ["حيوانات", "حيوانات أليفة", "حياة برية", "قطة", "كلب", "طائر"],
        "ru": ["животные", "домашние животные", "дикая природа", "кот", "собака", "птица"],
        "ko": ["동물", "애완동물", "야생동물", "고양이", "개", "새"],
    }),
    "foods": ("Foods", {
        "en": ["food", "meal", "cooking", "dish", "recipe", "cuisine", "eating"],
        "es": ["comida", "cocina", "plato", "receta", "gastronomía"],
        "fr": ["nourriture", "repas", "cuisine", "plat", "recette", "gastronomie"],
        "de": ["essen", "mahlzeit", "kochen", "gericht", "rezept", "küche"],
        "zh": ["食物", "餐", "烹饪", "菜肴", "食谱"],
        "zh_TW": ["食物", "餐點", "烹飪", "菜餚", "食譜"],
        "ja": ["食べ物", "食事", "料理", "皿", "レシピ"],
        "ar": ["طعام", "وجبة", "طبخ", "طبق", "وصفة"],
        "ru": ["еда", "приготовление", "блюдо", "рецепт", "кухня"],
        "ko": ["음식", "식사", "요리", "레시피", "요리법"],
    }),
    "screenshots": ("Screenshots", {
        "en": ["screenshot", "screen", "computer", "software", "app", "interface", "digital"],
        "es": ["captura de pantalla", "pantalla", "computadora", "software", "aplicación"],
        "fr": ["capture d'écran", "écran", "ordinateur", "logiciel", "application"],
        "de": ["bildschirmfoto", "bildschirm", "computer", "software", "anwendung"],
        "zh": ["截图", "屏幕", "计算机", "软件", "应用程序"],
        "ja": ["スクリーンショット", "画面", "コンピュータ", "ソフトウェア", "アプリ"],
        "ar": ["لقطة شاشة", "شاشة", "حاسوب", "برنامج", "تطبيق"],
        "ru": ["скриншот", "экран", "компьютер", "программа", "приложение"],
        "ko": ["스크린샷", "화면", "컴퓨터", "소프트웨어", "앱"],
    }),
    "graphs_charts": ("Graphs and Charts", {
        "en": ["chart", "graph", "data", "statistics", "diagram", "infographic",
               "visualization"],
        "es": ["gráfico", "datos", "estadísticas", "diagrama", "infografía"],
        "fr": ["graphique", "données", "statistiques", "diagramme", "infographie"],
        "de": ["diagramm", "daten", "statistiken", "schaubild", "infografik"],
        "zh": ["图表", "数据", "统计", "图解", "信息图"],
        "ja": ["チャート", "データ", "統計", "図表", "インフォグラフィック"],
        "ar": ["مخطط", "بيانات", "إحصائيات", "رسم بياني", "إنفوجرافيك"],
        "ru": ["график", "данные", "статистика", "диаграмма", "инфографика"],
        "ko": ["차트", "데이터", "통계", "다이어그램", "인포그래픽"],
    }),
}

CATEGORIES: Mapping[str, Category] = MappingProxyType(
    {
        key: Category(
            key=key,
            name=name,
            keywords=MappingProxyType({lang: tuple(words) for lang, words in keywords.items()}),
        )
        for key, (name, keywords) in _CATEGORY_DATA.items()
    }
)

LOCATION_TERMS: Mapping[str, tuple[str, ...]] = MappingProxyType(
    {
        "ja_JP": ("Japan", "Japanese", "Tokyo"),
        "ko_KR": ("Korea", "Korean", "Seoul"),
        "zh_CN": ("China", "Chinese", "Beijing"),
        "zh_HK": ("Hong Kong", "Chinese"),
        "fr_FR": ("France", "French", "Paris"),
        "de_DE": ("Germany", "German", "Berlin"),
        "es_ES": ("Spain", "Spanish", "Madrid"),
        "it_IT": ("Italy", "Italian", "Rome"),
        "ru_RU": ("Russia", "Russian", "Moscow"),
    }
)


def base_language(locale_code: str) -> str:
    """'pt_BR' -> 'pt'."""
    return locale_code.split("_", 1)[0]


def keywords_for(
    category_key: str,
    locale_code: str,
    categories: Mapping[str, Category] = CATEGORIES,
) -> tuple[str, ...]:
    """Keywords for a category in a locale.

    Resolution order: full locale code, then base language, then English,
    then an empty tuple.
    """
    category = categories.get(category_key)
    if category is None:
        return ()
    for key in (locale_code, base_language(locale_code), "en"):
        words = category.keywords.get(key)
        if words:
            return tuple(words)
    return ()


def supports_source(
    locale_code: str,
    source_name: str,
    languages: Mapping[str, Language] = LANGUAGES_BY_CODE,
) -> bool:
    """Whether the source can be queried at all for this locale."""
    language = languages.get(locale_code)
    return language is not None and source_name in language.params


def language_param(
    locale_code: str,
    source_name: str,
    languages: Mapping[str, Language] = LANGUAGES_BY_CODE,
) -> str:
    """Language parameter to send to a source; "" means no language filter.

    "" is also returned for unsupported pairs, so use supports_source() to
    tell the two apart.
    """
    language = languages.get(locale_code)
    if language is None:
        return ""
    return language.params.get(source_name, "")


def is_high_priority(language: Language) -> bool:
    return language.params.get(PRIMARY_SOURCE, "") in HIGH_PRIORITY_LANGUAGES


def schedule_locales(languages: tuple[Language, ...] = LANGUAGES) -> list[Language]:
    """High-priority locales first, then the rest, each group in table order."""
    first = [lang for lang in languages if is_high_priority(lang)]
    rest = [lang for lang in languages if not is_high_priority(lang)]
    return first + rest


def localize_keyword(
    keyword: str, locale_code: str | None, rng: random.Random | None = None
) -> str:
    """Sometimes append a location term to bias unfiltered sources toward a locale."""
    terms = LOCATION_TERMS.get(locale_code or "")
    if not terms:
        return keyword
    rng = rng or random
    if rng.random() < LOCATION_TERM_PROBABILITY:
        return f"{keyword} {rng.choice(terms)}"
    return keyword
