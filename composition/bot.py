import discord
from discord.ext import commands
import logging
import os
from typing import Dict, Optional

from .config_manager import ConfigManager
from .exceptions import ConfigurationMissingError, InvalidSessionStateError
from .game_controller import GameController
from .game_repository import GameRepository
from .game_screen import GameScreen
from .models import GameResult, Level

logger = logging.getLogger(__name__)


class CompositionBot(commands.Bot):
    """Discord bot running Composition arithmetic games, one per channel"""

    def __init__(self, config=None):
        intents = discord.Intents.none()
        intents.guilds = True  # Required for slash commands

        command_prefix = '!'
        if config and 'bot' in config:
            command_prefix = config['bot'].get('command_prefix', '!')

        super().__init__(
            command_prefix=command_prefix,
            intents=intents,
            help_command=None
        )

        self.app_config = config or {}

        self.config_manager: Optional[ConfigManager] = None
        self.repository: Optional[GameRepository] = None
        self.sessions: Dict[int, GameScreen] = {}

    async def setup_hook(self):
        """Called when the bot is starting up"""
        try:
            logger.info("Setting up bot components...")
            self.setup_components()
            await self.setup_commands()
            logger.info("Bot setup completed successfully")
        except Exception as e:
            logger.error(f"Error during bot setup: {e}")
            raise

    def setup_components(self):
        """Create the settings lookup and repository from the loaded config."""
        self.config_manager = ConfigManager()
        errors = self.config_manager.apply_config(self.app_config)
        for error in errors:
            logger.warning(f"Configuration entry rejected: {error}")
        self.repository = GameRepository(self.config_manager)

    async def setup_commands(self):
        """Register all slash commands"""
        @self.tree.command(name="help", description="Display available commands and their descriptions")
        async def help_command(interaction: discord.Interaction):
            await self.handle_help(interaction)

        @self.tree.command(name="levels", description="Show the available difficulty levels")
        async def levels_command(interaction: discord.Interaction):
            await self.handle_levels(interaction)

        @self.tree.command(name="play", description="Start a game at the given level")
        async def play_command(interaction: discord.Interaction, level: str):
            await self.handle_play(interaction, level)

        @self.tree.command(name="answer", description="Answer the current question")
        async def answer_command(interaction: discord.Interaction, number: int):
            await self.handle_answer(interaction, number)

        @self.tree.command(name="stop", description="Stop the game in this channel")
        async def stop_command(interaction: discord.Interaction):
            await self.handle_stop(interaction)

        @self.tree.command(name="status", description="Show the progress of the current game")
        async def status_command(interaction: discord.Interaction):
            await self.handle_status(interaction)

        logger.info("Slash commands registered successfully")

    async def on_ready(self):
        """Called when the bot has successfully connected to Discord"""
        logger.info(f"Bot is ready! Logged in as {self.user}")
        try:
            synced = await self.tree.sync()
            logger.info(f"Synced {len(synced)} slash commands")
        except discord.HTTPException as e:
            logger.error(f"Failed to sync slash commands: {e}")

    async def on_error(self, event, *args, **kwargs):
        """Handle general bot errors"""
        logger.error(f"An error occurred in event {event}", exc_info=True)

    def get_session(self, channel_id: int) -> Optional[GameController]:
        screen = self.sessions.get(channel_id)
        return screen.controller if screen else None

    async def handle_help(self, interaction: discord.Interaction):
        """Handle /help command"""
        embed = discord.Embed(
            title="🧮 Composition - Help",
            description="Find the missing term of the sum before the time runs out.",
            color=0x6699ff
        )
        embed.add_field(
            name="🎮 Game",
            value=(
                "`/levels` - Show difficulty levels\n"
                "`/play <level>` - Start a game in this channel\n"
                "`/answer <number>` - Answer the current question\n"
                "`/status` - Show game progress\n"
                "`/stop` - Stop the current game"
            ),
            inline=False
        )
        embed.set_footer(text="Reach both the required count and percent of right answers to win")
        try:
            await interaction.response.send_message(embed=embed, ephemeral=True)
        except discord.HTTPException as e:
            logger.error(f"Failed to send help: {e}")

    async def handle_levels(self, interaction: discord.Interaction):
        """Handle /levels command"""
        embed = discord.Embed(
            title="📚 Levels",
            description=self.config_manager.get_settings_summary(),
            color=0x6699ff
        )
        try:
            await interaction.response.send_message(embed=embed, ephemeral=True)
        except discord.HTTPException as e:
            logger.error(f"Failed to send levels: {e}")

    async def handle_play(self, interaction: discord.Interaction, level_name: str):
        """Handle /play command"""
        channel_id = interaction.channel_id

        if channel_id in self.sessions:
            await self.send_warning_response(
                interaction,
                "A game is already running in this channel. Use `/stop` to end it.",
                "⚠️ Game In Progress"
            )
            return

        try:
            level = Level.from_name(level_name)
            controller = GameController(
                self.repository,
                level,
                tick_interval=self.config_manager.get_tick_interval(),
                session_id=str(channel_id)
            )
        except ValueError:
            levels = ", ".join(level.value for level in self.config_manager.get_available_levels())
            await self.send_error_response(
                interaction,
                f"Unknown level `{level_name}`. Available levels: {levels}",
                "❌ Unknown Level"
            )
            return
        except ConfigurationMissingError as e:
            logger.error(f"Cannot start game in channel {channel_id}: {e}")
            await self.send_error_response(interaction, str(e), "❌ Level Not Available")
            return

        async def on_finished(result: GameResult):
            await self.finish_session(channel_id)

        screen = GameScreen(controller, interaction.channel, on_finished=on_finished)
        self.sessions[channel_id] = screen

        settings = controller.game_settings
        embed = discord.Embed(
            title="🎯 Game Started!",
            description=f"Level **{level.name.title()}**",
            color=0x00ff00
        )
        embed.add_field(
            name="🏁 To Win",
            value=(
                f"Right answers: {settings.min_count_of_right_answers}\n"
                f"Percent of right answers: {settings.min_percent_of_right_answers}%\n"
                f"Time: {settings.game_time_in_seconds} seconds"
            ),
            inline=False
        )
        try:
            await interaction.response.send_message(embed=embed)
        except discord.HTTPException as e:
            logger.error(f"Failed to send start message for channel {channel_id}: {e}")

        try:
            await controller.start()
        except InvalidSessionStateError as e:
            # Stopped before the countdown began
            logger.warning(f"Game in channel {channel_id} was not started: {e}")
            return
        logger.info(f"Started {level.name} game in channel {channel_id}")

    async def handle_answer(self, interaction: discord.Interaction, number: int):
        """Handle /answer command"""
        controller = self.get_session(interaction.channel_id)
        if controller is None:
            await self.send_info_response(
                interaction,
                "There is no game running in this channel. Use `/play <level>` to start one.",
                "ℹ️ No Active Game"
            )
            return

        question = await controller.submit_answer(number)
        if question is None:
            await self.send_info_response(interaction, "The game is already over.", "ℹ️ Game Over")
            return

        if number == question.right_answer:
            message = f"✅ Right! {question.visible_value} + {number} = {question.sum}"
        else:
            message = f"❌ Wrong, the answer was {question.right_answer}"
        try:
            await interaction.response.send_message(message, ephemeral=True)
        except discord.HTTPException as e:
            logger.error(f"Failed to send answer feedback: {e}")

    async def handle_stop(self, interaction: discord.Interaction):
        """Handle /stop command"""
        stopped = await self.finish_session(interaction.channel_id)
        if stopped:
            await self.send_info_response(interaction, "The game has been stopped.", "🛑 Game Stopped")
        else:
            await self.send_info_response(
                interaction,
                "There is no game running in this channel.",
                "ℹ️ No Active Game"
            )

    async def handle_status(self, interaction: discord.Interaction):
        """Handle /status command"""
        controller = self.get_session(interaction.channel_id)
        if controller is None:
            await self.send_info_response(
                interaction,
                "There is no game running in this channel. Use `/play <level>` to start one.",
                "ℹ️ No Active Game"
            )
            return

        progress = controller.get_session_progress()
        embed = discord.Embed(
            title=f"📊 Level {progress['level'].title()}",
            color=0x6699ff
        )
        embed.add_field(name="⏱️ Time Remaining", value=progress['formatted_time'] or "--:--", inline=True)
        embed.add_field(
            name="🎯 Answers",
            value=f"{progress['count_of_right_answers']}/{progress['count_of_questions']} "
                  f"({progress['percent_of_right_answers']}%)",
            inline=True
        )
        try:
            await interaction.response.send_message(embed=embed, ephemeral=True)
        except discord.HTTPException as e:
            logger.error(f"Failed to send status: {e}")

    async def finish_session(self, channel_id: int) -> bool:
        """
        Dispose and forget the session of a channel.

        Returns:
            True if a session existed
        """
        screen = self.sessions.pop(channel_id, None)
        if screen is None:
            return False
        await screen.controller.dispose()
        logger.info(f"Session for channel {channel_id} removed")
        return True

    async def close(self):
        for channel_id in list(self.sessions):
            await self.finish_session(channel_id)
        await super().close()

    async def send_error_response(self, interaction: discord.Interaction, message: str, title: str = "❌ Error"):
        """Send formatted error response to user"""
        await self._send_embed_response(interaction, message, title, 0xff0000)

    async def send_info_response(self, interaction: discord.Interaction, message: str, title: str = "ℹ️ Information"):
        """Send formatted info response to user"""
        await self._send_embed_response(interaction, message, title, 0x6699ff)

    async def send_warning_response(self, interaction: discord.Interaction, message: str, title: str = "⚠️ Warning"):
        """Send formatted warning response to user"""
        await self._send_embed_response(interaction, message, title, 0xffaa00)

    async def _send_embed_response(self, interaction: discord.Interaction, message: str, title: str, color: int):
        try:
            embed = discord.Embed(
                title=title,
                description=message,
                color=color
            )

            if interaction.response.is_done():
                await interaction.followup.send(embed=embed, ephemeral=True)
            else:
                await interaction.response.send_message(embed=embed, ephemeral=True)
        except discord.HTTPException:
            logger.error(f"Failed to send response to user: {title}")


async def run_bot(token=None, config=None):
    """Run the bot with proper error handling"""
    if not token:
        token = os.getenv('DISCORD_BOT_TOKEN')

    if not token:
        logger.error("No Discord bot token provided")
        return

    bot = CompositionBot(config)

    try:
        logger.info("Starting Composition bot...")
        await bot.start(token)
    except discord.LoginFailure:
        logger.error("Invalid bot token provided")
    except discord.HTTPException as e:
        logger.error(f"HTTP error occurred: {e}")
    finally:
        if not bot.is_closed():
            await bot.close()
