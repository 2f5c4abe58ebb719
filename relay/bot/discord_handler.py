import logging

import discord

logger = logging.getLogger(__name__)


def to_embed(message):
    """RenderableMessage -> discord.Embed."""
    embed = discord.Embed(
        title=message.title,
        description=message.body,
        color=discord.Color.from_str(message.color),
        timestamp=message.timestamp,
    )
    if message.footer:
        embed.set_footer(text=message.footer)
    if message.image_url:
        embed.set_image(url=message.image_url)
    for name, value in message.fields:
        embed.add_field(name=name, value=value, inline=True)
    return embed


async def send_message(channel, message):
    """Deliver one rendered message. Errors propagate to the caller."""
    await channel.send(embed=to_embed(message))
    logger.info(
        f"Message sent to Discord channel #{channel.name} (type: {message.item_type.value})"
    )


def build_client(on_ready=None):
    """Discord client with the intents the relay needs."""
    intents = discord.Intents.default()
    intents.guilds = True
    intents.guild_messages = True
    client = discord.Client(intents=intents)

    @client.event
    async def on_ready():
        logger.info(f"Discord bot logged in as {client.user}")
        for channel in client.get_all_channels():
            if isinstance(channel, discord.TextChannel):
                logger.debug(f"  - {channel.name}: {channel.id}")
        if on_ready is not None:
            await on_ready(client)

    return client
