"""
User-facing text templates for the Composition quiz game.
"""

PROGRESS_ANSWERS = "Right answers: {0} (minimum {1})"
SCORE_PERCENTAGE = "Percent of right answers: {0}%"
REQUIRED_SCORE = "Required right answers: {0}"
SCORE_ANSWERS = "Your right answers: {0}"
REQUIRED_PERCENTAGE = "Required percent of right answers: {0}%"
QUESTION_PROMPT = "{0} = {1} + ?"

RESULT_TITLE_WINNER = "You won!"
RESULT_TITLE_LOSER = "You lost"
RETRY_HINT = "Use /play to try again"

RESULT_ICON_SUCCESS = "😊"
RESULT_ICON_FAILURE = "😢"
