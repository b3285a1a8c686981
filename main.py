#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
kook 俄罗斯轮盘机器人
基于khl.py开发
"""

import re
import os
import sys
import asyncio
import traceback
from loguru import logger
from dotenv import load_dotenv
from khl import Bot, Message
from khl.card import Card, CardMessage, Module, Element, Types

from config1 import get_json
from func.roulette_table import RouletteTable, resolve_player_id
from func.roulette_cards import build_card

load_dotenv(get_json.ENV_PATH)

"""
bot_token
"""
BOT_TOKEN = os.getenv('BOT_TOKEN')


"""
日志配置
"""
def setup_logging():
    if get_json.log_create == 1:
        logger.add(get_json.log_path, rotation=get_json.log_rotation, encoding='utf-8')


"""
俄罗斯轮盘
"""
#全局牌桌，频道ID -> 游戏
table = RouletteTable()


def player_of(msg: Message) -> str:
    #获取玩家标识，用户名相同的玩家靠识别号区分
    author = msg.author
    return resolve_player_id(author.username, author.identify_num, author.nickname, author.id)


async def play(msg: Message, command: str):
    #把指令交给牌桌处理并回复结果
    try:
        channel_id = msg.ctx.channel.id
        player_id = player_of(msg)

        outcome = table.handle(channel_id, player_id, command)
        if outcome.ok and outcome.event in ('created', 'fatal', 'stopped'):
            logger.info(f"频道 {channel_id}: {player_id} -> {outcome.event}")

        await msg.reply(CardMessage(build_card(outcome)))

    except Exception as e:
        logger.warning(f"处理 /{command} 命令时出错: {e}")
        await send_error_message(msg, f"处理 /{command} 命令时出现错误")


#聊天指令 -> 牌桌指令
CHAT_COMMANDS = {
    'startroulette': 'create',
    'join': 'join',
    'startgame': 'begin',
    'pull': 'pull',
    'pass': 'pass',
    'skip': 'skip',
    'stopgame': 'stop',
    'status': 'status',
    'help': 'help',
}


def register_commands(bot: Bot):
    #注册轮盘指令
    for name, command in CHAT_COMMANDS.items():
        bot.command(name=name, prefixes=['/'])(_command_handler(command))

    #消息监听
    @bot.on_message()
    async def handle_all_messages(msg: Message):

        #只处理文本消息
        if not msg.content or not isinstance(msg.content, str):
            return

        content = msg.content.strip()

        #正则表达除去前缀
        command_match = re.match(r'^/(\w+)', content)
        if command_match:
            command = command_match.group(1).lower()
            logger.info(f"📝 用户 {msg.author.username} 在频道 {msg.ctx.channel.id} 执行了 {command} 命令")


def _command_handler(command: str):
    async def handler(msg: Message):
        await play(msg, command)
    handler.__name__ = f"{command}_command"
    return handler


#处理错误消息
async def send_error_message(msg: Message, error_text: str):
    card = Card(
        Module.Section(
            Element.Text(
                f"⚠️ **系统错误**\n"
                f"{error_text}，请稍后重试。",
                type=Types.Text.KMD
            )
        ),
        theme=Types.Theme.WARNING
    )

    await msg.reply(CardMessage(card))


"""
主函数
"""
async def main():
    if not BOT_TOKEN:
        logger.warning("❌ 错误: 请设置 BOT_TOKEN 环境变量")
        logger.warning("💡 使用方法:")
        logger.warning("  在 config1/.env 中写入 BOT_TOKEN=你的机器人令牌")
        logger.warning("  或 Linux/Mac: export BOT_TOKEN='你的机器人令牌'")
        sys.exit(1)

    setup_logging()

    #创建机器人实例
    bot = Bot(token=BOT_TOKEN)
    register_commands(bot)

    try:
        logger.success("🎉 启动机器人...")
        logger.success("按 Ctrl+C 停止机器人")
        logger.success("=" * 50)

        await bot.start()

    except KeyboardInterrupt:
        logger.success("🛑 机器人已手动停止")
    except Exception as e:
        logger.warning(f"❌ 启动机器人时出错: {e}")
        traceback.print_exc()


if __name__ == '__main__':
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("🛑 机器人已手动停止")
    except Exception as e:
        logger.warning(f"❌ 启动机器人时出错: {e}")
        traceback.print_exc()
        sys.exit(1)
