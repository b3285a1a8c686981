from typing import Tuple
from khl.card import Card, Module, Element, Types

from func.roulette_table import Outcome, HELP_ENTRIES

"""
把游戏结果渲染成卡片消息
"""

#错误类型 -> 提示文字
ERROR_TEXTS = {
    'AlreadyActive': "❌ **游戏进行中**\n当前频道已经有一个游戏正在进行中！",
    'NoActiveGame': "❌ **没有进行中的游戏**\n请先输入 `/startroulette` 创建游戏。",
    'DuplicatePlayer': "ℹ️ **已经加入**\n{player}，你已经在游戏中了！",
    'InsufficientPlayers': "⚠️ **人数不足**\n至少需要{required}名玩家才能开始游戏！当前只有{player_count}名玩家。",
    'NotStarted': "⏸️ **游戏尚未开始**\n请等待玩家加入后输入 `/startgame` 开始游戏。",
    'AlreadyStarted': "❌ **游戏已经开始**\n请等待下一场游戏。",
    'NotYourTurn': "🚫 **还没轮到你**\n请等待 {expected} 扣动扳机。",
    'MustPullFirst': "⚠️ **请先开枪**\n{player}，本回合至少开一枪才能 `/pass`，或者使用 `/skip` 跳过。",
    'AlreadyActedThisTurn': "⚠️ **不能跳过**\n{player}，本回合已经开过枪，只能 `/pull` 或 `/pass`。",
    'NoSkipsLeft': "❌ **跳过次数已用完**\n{player}，你只能 `/pull` 了。",
    'UnknownCommand': "❌ **未知指令**\n输入 `/help` 查看可用指令。",
}

ERROR_THEMES = {
    'NoActiveGame': Types.Theme.DANGER,
    'AlreadyActive': Types.Theme.DANGER,
    'AlreadyStarted': Types.Theme.DANGER,
    'NoSkipsLeft': Types.Theme.DANGER,
    'UnknownCommand': Types.Theme.DANGER,
    'DuplicatePlayer': Types.Theme.SECONDARY,
}


def _error_text(outcome: Outcome) -> str:
    template = ERROR_TEXTS.get(outcome.error)
    if template is None:
        return f"⚠️ **操作失败**\n{outcome.message}"

    values = {'player': outcome.player}
    values.update(outcome.context)
    try:
        return template.format(**values)
    except KeyError:
        return f"⚠️ **操作失败**\n{outcome.message}"


def render_text(outcome: Outcome) -> Tuple[str, Types.Theme]:
    #返回 (文字, 主题)
    if not outcome.ok:
        return _error_text(outcome), ERROR_THEMES.get(outcome.error, Types.Theme.WARNING)

    data = outcome.data
    event = outcome.event

    if event == 'created':
        text = (
            f"🎮 **{outcome.player} 开启了一局俄罗斯轮盘！**\n"
            f"🔫 弹仓: {data['chambers']} 发，其中 1 发实弹\n\n"
            f"输入 `/join` 加入游戏，人齐后输入 `/startgame` 开始。"
        )
        return text, Types.Theme.SUCCESS

    if event == 'joined':
        text = (
            f"✅ **{outcome.player} 加入了游戏！**\n"
            f"👥 当前玩家({len(data['players'])}): {', '.join(data['players'])}"
        )
        return text, Types.Theme.SUCCESS

    if event == 'started':
        text = (
            f"🎲 **游戏开始！**\n"
            f"玩家: {', '.join(data['players'])}\n\n"
            f"第一位: {data['current_player']}，请输入 `/pull` 扣动扳机。"
        )
        return text, Types.Theme.SUCCESS

    if event == 'survived':
        text = (
            f"*咔嗒* **{outcome.player} 活下来了！**\n"
            f"🔫 剩余弹仓: {data['remaining_chambers']}\n"
            f"💀 下一枪中弹概率: {data['fatal_odds_next_pct']:.1f}%\n\n"
            f"继续 `/pull`，或者 `/pass` 交给下一位。"
        )
        return text, Types.Theme.INFO

    if event == 'fatal':
        text = (
            f"💥 **砰！{outcome.player} 中弹了！**\n"
            f"游戏结束，输入 `/startroulette` 再来一局。"
        )
        return text, Types.Theme.DANGER

    if event == 'passed':
        text = f"➡️ {outcome.player} 让出了回合\n下一位: **{data['next_player']}**"
        return text, Types.Theme.INFO

    if event == 'skipped':
        text = (
            f"⏭️ {outcome.player} 跳过了本回合（剩余跳过次数: {data['skips_left']}）\n"
            f"下一位: **{data['next_player']}**"
        )
        return text, Types.Theme.INFO

    if event == 'stopped':
        return "🏁 **游戏已结束**\n输入 `/startroulette` 开始新游戏。", Types.Theme.SECONDARY

    if event == 'status':
        skips = '\n'.join(
            f"• {p}: 剩余跳过 {data['skips_remaining'][p]} 次" for p in data['players']
        )
        text = (
            f"📊 **游戏状态**\n"
            f"👥 玩家: {', '.join(data['players'])}\n"
            f"⏳ 等待: {data['current_player']}\n"
            f"🔫 剩余弹仓: {data['remaining_chambers']}\n\n"
            f"{skips}"
        )
        return text, Types.Theme.INFO

    if event == 'help':
        return help_text(), Types.Theme.INFO

    return f"⚠️ 未知结果: {event}", Types.Theme.WARNING


def help_text() -> str:
    lines = [f"• `{cmd}` - {desc}" for cmd, desc in HELP_ENTRIES]
    return "**🕹️ 可用命令:**\n" + '\n'.join(lines)


def help_card() -> Card:
    #帮助卡片
    return Card(
        Module.Header("🔫 俄罗斯轮盘帮助"),
        Module.Section(Element.Text(help_text(), type=Types.Text.KMD)),
        Module.Context(
            Element.Text("💡 所有人共用一个弹仓，每人有跳过机会", type=Types.Text.KMD)
        ),
        theme=Types.Theme.INFO
    )


def build_card(outcome: Outcome) -> Card:
    if outcome.ok and outcome.event == 'help':
        return help_card()

    text, theme = render_text(outcome)

    return Card(
        Module.Section(Element.Text(text, type=Types.Text.KMD)),
        theme=theme
    )
