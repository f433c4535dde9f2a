"""Font resources embedded in generated PDFs, by target language."""

FONT_MAP = {
    "Vietnamese": "Roboto-Regular.ttf",
    "Japanese": "NotoSansJP-Regular.ttf",
    "Korean": "NotoSansKR-Regular.ttf",
    "Chinese": "NotoSansSC-Regular.ttf",
    "Arabic": "NotoSansArabic-Regular.ttf",
    "Thai": "NotoSansThai-Regular.ttf",
    "default": "Roboto-Regular.ttf",
}


def font_file_for(target_language: str) -> str:
    return FONT_MAP.get(target_language, FONT_MAP["default"])

# Unicode TTFs commonly installed on worker hosts, tried when the mapped
# file is not in the fonts directory.
SYSTEM_FONT_FILES = (
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/TTF/DejaVuSans.ttf",
    "/usr/share/fonts/truetype/noto/NotoSans-Regular.ttf",
    "/Library/Fonts/Arial Unicode.ttf",
    "C:/Windows/Fonts/arial.ttf",
)

# reportlab's built-in Adobe CID fonts, usable without any font file.
CID_FONTS = {
    "Japanese": "HeiseiKakuGo-W5",
    "Korean": "HYGothic-Medium",
    "Chinese": "STSong-Light",
}
