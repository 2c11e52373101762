from telethon.tl.types import BotCommand

BOT_COMMANDS = [
    BotCommand(command="help", description="Yordam"),
    BotCommand(command="find", description="Dars qidirish: /find <nom>"),
    BotCommand(command="darslar", description="📚 Darslar menyusi"),
]
