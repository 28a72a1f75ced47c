"""
Unit tests for Discord bot integration and the game screen.
"""
import unittest
import asyncio
import logging
from unittest.mock import AsyncMock, Mock
import discord

from composition.bot import CompositionBot
from composition.game_controller import GameController
from composition.game_screen import GameScreen, build_game_embed
from composition.models import Level, Question, SessionState
from tests.test_fixtures import MockDiscordObjects, TestFixtures, async_test


class TestDiscordBotIntegration(unittest.TestCase):
    """Test Discord bot command handlers with mocked Discord API."""

    def setUp(self):
        logging.disable(logging.CRITICAL)

    def tearDown(self):
        logging.disable(logging.NOTSET)

    def create_bot(self, **config_kwargs):
        bot = CompositionBot(TestFixtures.create_bot_config(**config_kwargs))
        bot.setup_components()
        return bot

    @async_test
    async def test_setup_applies_configuration(self):
        """Test that the game section of the config reaches the settings lookup."""
        bot = self.create_bot(tick_interval=0.5, test_game_time=3)

        self.assertEqual(bot.config_manager.get_tick_interval(), 0.5)
        self.assertEqual(bot.repository.fetch_settings(Level.TEST).game_time_in_seconds, 3)

    @async_test
    async def test_command_registration(self):
        """Test that all slash commands are registered."""
        bot = self.create_bot()
        await bot.setup_commands()

        names = {command.name for command in bot.tree.get_commands()}
        self.assertEqual(names, {"help", "levels", "play", "answer", "stop", "status"})

    @async_test
    async def test_help_command(self):
        bot = self.create_bot()
        interaction = MockDiscordObjects.create_mock_interaction()

        await bot.handle_help(interaction)

        interaction.response.send_message.assert_called_once()
        embed = interaction.response.send_message.call_args.kwargs['embed']
        self.assertIn("Help", embed.title)

    @async_test
    async def test_play_starts_session(self):
        """Test that /play starts a game and renders the game message."""
        bot = self.create_bot()
        interaction = MockDiscordObjects.create_mock_interaction()

        await bot.handle_play(interaction, "easy")
        try:
            controller = bot.get_session(interaction.channel_id)
            self.assertIsNotNone(controller)
            self.assertIs(controller.state, SessionState.RUNNING)
            self.assertIs(controller.level, Level.EASY)

            interaction.response.send_message.assert_called_once()
            start_embed = interaction.response.send_message.call_args.kwargs['embed']
            self.assertIn("Game Started", start_embed.title)
            interaction.channel.send.assert_called()
        finally:
            await bot.finish_session(interaction.channel_id)

    @async_test
    async def test_play_unknown_level(self):
        bot = self.create_bot()
        interaction = MockDiscordObjects.create_mock_interaction()

        await bot.handle_play(interaction, "impossible")

        self.assertEqual(bot.sessions, {})
        embed = interaction.response.send_message.call_args.kwargs['embed']
        self.assertIn("Unknown Level", embed.title)

    @async_test
    async def test_play_level_without_settings(self):
        bot = self.create_bot()
        bot.config_manager.remove_level_settings(Level.HARD)
        interaction = MockDiscordObjects.create_mock_interaction()

        await bot.handle_play(interaction, "hard")

        self.assertEqual(bot.sessions, {})
        embed = interaction.response.send_message.call_args.kwargs['embed']
        self.assertIn("Not Available", embed.title)

    @async_test
    async def test_play_twice_refused(self):
        bot = self.create_bot()
        first = MockDiscordObjects.create_mock_interaction()
        second = MockDiscordObjects.create_mock_interaction()

        await bot.handle_play(first, "easy")
        try:
            controller = bot.get_session(first.channel_id)
            await bot.handle_play(second, "hard")

            self.assertIs(bot.get_session(first.channel_id), controller)
            embed = second.response.send_message.call_args.kwargs['embed']
            self.assertIn("Game In Progress", embed.title)
        finally:
            await bot.finish_session(first.channel_id)

    @async_test
    async def test_answer_right_and_wrong(self):
        """Test that /answer scores the current question."""
        bot = self.create_bot()
        interaction = MockDiscordObjects.create_mock_interaction()
        await bot.handle_play(interaction, "easy")
        controller = bot.get_session(interaction.channel_id)
        try:
            right = MockDiscordObjects.create_mock_interaction()
            await bot.handle_answer(right, controller.question.right_answer)
            self.assertIn("Right", right.response.send_message.call_args.args[0])

            wrong = MockDiscordObjects.create_mock_interaction()
            question = controller.question
            await bot.handle_answer(wrong, question.right_answer + 100)
            self.assertIn(f"was {question.right_answer}", wrong.response.send_message.call_args.args[0])

            self.assertEqual(controller.count_of_right_answers, 1)
            self.assertEqual(controller.count_of_questions, 2)
        finally:
            await bot.finish_session(interaction.channel_id)

    @async_test
    async def test_answer_without_session(self):
        bot = self.create_bot()
        interaction = MockDiscordObjects.create_mock_interaction()

        await bot.handle_answer(interaction, 3)

        embed = interaction.response.send_message.call_args.kwargs['embed']
        self.assertIn("No Active Game", embed.title)

    @async_test
    async def test_stop_disposes_session(self):
        bot = self.create_bot()
        interaction = MockDiscordObjects.create_mock_interaction()
        await bot.handle_play(interaction, "easy")
        controller = bot.get_session(interaction.channel_id)

        stop = MockDiscordObjects.create_mock_interaction()
        await bot.handle_stop(stop)

        self.assertIs(controller.state, SessionState.DISPOSED)
        self.assertEqual(bot.sessions, {})
        embed = stop.response.send_message.call_args.kwargs['embed']
        self.assertIn("Stopped", embed.title)

        again = MockDiscordObjects.create_mock_interaction()
        await bot.handle_stop(again)
        embed = again.response.send_message.call_args.kwargs['embed']
        self.assertIn("No Active Game", embed.title)

    @async_test
    async def test_status_command(self):
        bot = self.create_bot()
        interaction = MockDiscordObjects.create_mock_interaction()
        await bot.handle_play(interaction, "normal")
        try:
            status = MockDiscordObjects.create_mock_interaction()
            await bot.handle_status(status)

            embed = status.response.send_message.call_args.kwargs['embed']
            self.assertIn("Normal", embed.title)
            self.assertEqual(embed.fields[1].value, "0/0 (0%)")
        finally:
            await bot.finish_session(interaction.channel_id)

    @async_test
    async def test_game_expiry_sends_result(self):
        """Test that the result is sent and the session removed when time runs out."""
        bot = self.create_bot(tick_interval=0.01, test_game_time=2)
        interaction = MockDiscordObjects.create_mock_interaction()

        await bot.handle_play(interaction, "test")
        controller = bot.get_session(interaction.channel_id)
        await asyncio.wait_for(controller._timer.task, timeout=2.0)

        self.assertEqual(bot.sessions, {})
        self.assertIs(controller.state, SessionState.DISPOSED)
        self.assertFalse(controller.game_result.winner)
        result_embed = interaction.channel.send.call_args.kwargs['embed']
        self.assertIn("You lost", result_embed.title)

    @async_test
    async def test_discord_errors_do_not_break_session(self):
        """Test that failing message edits leave the game running."""
        bot = self.create_bot()
        interaction = MockDiscordObjects.create_mock_interaction()
        interaction.channel.send = AsyncMock(side_effect=discord.HTTPException(Mock(), "HTTP error"))

        await bot.handle_play(interaction, "easy")
        controller = bot.get_session(interaction.channel_id)
        try:
            self.assertIs(controller.state, SessionState.RUNNING)
            answer = MockDiscordObjects.create_mock_interaction()
            await bot.handle_answer(answer, controller.question.right_answer)
            self.assertEqual(controller.count_of_right_answers, 1)
        finally:
            await bot.finish_session(interaction.channel_id)

    @async_test
    async def test_concurrent_answers_get_feedback_for_scored_question(self):
        """Test that each /answer reply describes the question it was scored against."""
        bot = self.create_bot()
        first = Question(sum=10, visible_value=3, options=(7, 6))
        second = Question(sum=8, visible_value=2, options=(6, 7))
        third = Question(sum=5, visible_value=1, options=(4, 3))
        bot.repository.generate_question = Mock(side_effect=[first, second, third])
        interaction = MockDiscordObjects.create_mock_interaction()
        await bot.handle_play(interaction, "easy")
        try:
            one = MockDiscordObjects.create_mock_interaction()
            two = MockDiscordObjects.create_mock_interaction()
            await asyncio.gather(bot.handle_answer(one, 7), bot.handle_answer(two, 7))

            self.assertIn("Right", one.response.send_message.call_args.args[0])
            self.assertIn("was 6", two.response.send_message.call_args.args[0])
            self.assertEqual(bot.get_session(interaction.channel_id).count_of_right_answers, 1)
        finally:
            await bot.finish_session(interaction.channel_id)

    @async_test
    async def test_stop_before_countdown_starts(self):
        """Test that a /stop arriving while /play is replying leaves no game behind."""
        bot = self.create_bot()
        interaction = MockDiscordObjects.create_mock_interaction()
        controllers = []

        async def stop_while_replying(*args, **kwargs):
            controllers.append(bot.get_session(interaction.channel_id))
            await bot.handle_stop(MockDiscordObjects.create_mock_interaction())

        interaction.response.send_message = AsyncMock(side_effect=stop_while_replying)

        await bot.handle_play(interaction, "easy")

        self.assertEqual(bot.sessions, {})
        self.assertIs(controllers[0].state, SessionState.DISPOSED)
        self.assertIsNone(controllers[0]._timer.task)


class TestGameScreen(unittest.TestCase):
    """Test cases for rendering a running game."""

    def setUp(self):
        self.repository = TestFixtures.create_mock_repository()
        logging.disable(logging.CRITICAL)

    def tearDown(self):
        logging.disable(logging.NOTSET)

    def test_embed_before_start(self):
        controller = GameController(self.repository, Level.EASY)
        embed = build_game_embed(controller)

        self.assertEqual(embed.description, "Preparing question...")
        self.assertEqual(embed.fields[0].value, "--:--")

    @async_test
    async def test_screen_sends_then_edits(self):
        """Test that the first render sends a message and later ones edit it."""
        controller = GameController(self.repository, Level.EASY, tick_interval=60.0)
        channel = MockDiscordObjects.create_mock_channel()
        screen = GameScreen(controller, channel)

        await controller.start()
        try:
            channel.send.assert_called_once()
            embed = channel.send.call_args.kwargs['embed']
            self.assertEqual(embed.description, "10 = 3 + ?")
            self.assertEqual(embed.fields[0].value, "5 | 7 | 2 | 9")

            await controller.choose_answer(7)
            screen.message.edit.assert_called()
            edited = screen.message.edit.call_args.kwargs['embed']
            self.assertIn("Right answers: 1 (minimum 5)", edited.fields[2].value)
        finally:
            await controller.dispose()

    @async_test
    async def test_screen_reports_result(self):
        controller = GameController(self.repository, Level.EASY, tick_interval=60.0)
        channel = MockDiscordObjects.create_mock_channel()
        finished = AsyncMock()
        GameScreen(controller, channel, on_finished=finished)

        await controller.start()
        await controller._on_expire()
        try:
            finished.assert_called_once_with(controller.game_result)
            self.assertIn("You lost", channel.send.call_args.kwargs['embed'].title)
        finally:
            await controller.dispose()


if __name__ == '__main__':
    unittest.main()
