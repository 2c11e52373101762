"""
UI 常量与文本模板 (面向用户的文本为乌兹别克语)
"""

class UIStatus:
    WAIT = "⏳"
    NEXT_PAGE = "⏭️"
    PREV = "⬅️"
    NEXT = "➡️"
    DOT = "•"
    BOOKS = "📚"
    ELLIPSIS = "…"


MENU_BUTTON_TEXT = f"{UIStatus.BOOKS} Darslar"
NAV_PREV_TEXT = f"{UIStatus.PREV} Oldingi"
NAV_NEXT_TEXT = f"Keyingi {UIStatus.NEXT}"
MENU_HEADER_TEXT = UIStatus.BOOKS + " Darslar ({first}–{last} / {total})"

# 搜索
SEARCH_USAGE_TEXT = 'Qidiruv: /find <video nomi> yoki /find "aniq nom"'
SEARCH_NO_SCOPE_TEXT = (
    "Siz bilan umumiy guruhlarda indekslangan darslar topilmadi. "
    "Avval guruhda /find yoki 📚 Darslar menyusini sinab ko‘ring."
)
SEARCH_GROUP_NOT_FOUND_TEXT = "Topilmadi. Nomi aniqroq yoki to‘liq yozib ko‘ring."
SEARCH_PRIVATE_NOT_FOUND_TEXT = "Hech narsa topilmadi. Nomi aniqroq yozib ko‘ring."
SEARCH_GROUP_FUZZY_TEXT = "Yaqin variantlar:\n{items}\n\nAniqroq nom kiriting."
SEARCH_PRIVATE_EXACT_AMBIGUOUS_TEXT = (
    "Bu nom bir nechta guruhda topildi:\n{items}\n"
    "Aniqroq yozing (guruh nomi yoki qo‘shimcha so‘zlar)."
)
SEARCH_PRIVATE_FUZZY_TEXT = "Aniq moslik topilmadi, lekin yaqin variantlar bor:\n{items}\n\nAniqroq nom kiriting."

# 转发
FORWARD_FAILED_GROUP_TEXT = "Xabar topildi, lekin forward qilib bo‘lmadi (o‘chirilgan bo‘lishi mumkin)."
FORWARD_FAILED_GROUP_FUZZY_TEXT = "Xabar topildi, lekin forward qilib bo‘lmadi."
FORWARD_FAILED_PRIVATE_TEXT = "Topildi, lekin forward qilib bo‘lmadi."
FORWARD_FAILED_ALERT_TEXT = "Forward qilib bo‘lmadi (xabar o‘chirilgan bo‘lishi mumkin)."
FORWARD_SENT_TEXT = "Yuborildi."
ACCESS_DENIED_TEXT = "Bu dars siz uchun mavjud emas."

# 菜单
MENU_EMPTY_GROUP_TEXT = "Bu guruhda indekslangan darslar topilmadi. Video tashlab, caption ga nom yozing."
MENU_EMPTY_PRIVATE_TEXT = "Siz bo‘lgan guruhlarda indekslangan darslar topilmadi."

# 错误
STORAGE_ERROR_TEXT = "Texnik nosozlik yuz berdi. Birozdan so‘ng qayta urinib ko‘ring."
UNEXPECTED_ERROR_TEXT = "Kutilmagan texnik nosozlik. Qayta urinib ko‘ring."

HELP_TEXT = """Qoidalar:
• Video faqat guruhga tashlangan bo‘lsa indekslanadi (caption — nom sifatida).
• Qidiruv faqat /find orqali:
   – Guruhda: /find <nom> → shu guruhdan forward
   – Private: /find <nom> → siz bor guruhlarda qidiradi
• 📚 Darslar: /darslar yoki "📚 Darslar" tugmasi
   – Guruhda: shu guruh darslari ro‘yxati
   – Private: siz bor guruhlardagi darslar ro‘yxati
• BotFather: /setprivacy → Disable (guruh xabarlarini ko‘rish va a’zolikni bilish uchun)."""
