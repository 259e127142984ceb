GUILD_ID = 123
CHANNEL_ID = 456
