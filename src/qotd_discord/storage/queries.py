"""SQL statements used by the QOTD store.

Every statement is a module level constant so that the store never builds
SQL from user input. The draw statements pick one unused row at random and
mark it as used in the same statement; callers must hold the pool's advisory
lock (see `ADVISORY_LOCK`) for the duration of the transaction.
"""

# transaction-scoped lock serializing draws and resets of one pool table
ADVISORY_LOCK = "SELECT pg_advisory_xact_lock(hashtext($1))"

# questions
DRAW_QUESTION = """
UPDATE questions
SET in_use = TRUE
WHERE question_id = (
    SELECT question_id FROM questions
    WHERE NOT in_use
    ORDER BY random()
    LIMIT 1
    FOR UPDATE
)
RETURNING question_id, question_string, in_use
"""
RESET_QUESTIONS = "UPDATE questions SET in_use = FALSE"
COUNT_QUESTIONS = "SELECT COUNT(*) FROM questions"
SEEDED_QUESTIONS = "SELECT question_string FROM questions"
SEED_QUESTION = "INSERT INTO questions (question_string, in_use) VALUES ($1, FALSE)"

# polls
DRAW_POLL = """
UPDATE polls
SET in_use = TRUE
WHERE poll_id = (
    SELECT poll_id FROM polls
    WHERE NOT in_use
    ORDER BY random()
    LIMIT 1
    FOR UPDATE
)
RETURNING poll_id, poll_string, in_use
"""
RESET_POLLS = "UPDATE polls SET in_use = FALSE"
COUNT_POLLS = "SELECT COUNT(*) FROM polls"
SEEDED_POLLS = "SELECT poll_string FROM polls"
SEED_POLL = "INSERT INTO polls (poll_string, in_use) VALUES ($1, FALSE)"

# guild configuration
UPSERT_CHANNEL = """
INSERT INTO channels (guild_id, channel_id)
VALUES ($1, $2)
ON CONFLICT (guild_id)
DO UPDATE SET channel_id = EXCLUDED.channel_id
"""
SELECT_CHANNEL = "SELECT guild_id, channel_id FROM channels WHERE guild_id = $1"

UPSERT_PING_ROLE = """
INSERT INTO ping_roles (guild_id, ping_role)
VALUES ($1, $2)
ON CONFLICT (guild_id)
DO UPDATE SET ping_role = EXCLUDED.ping_role
"""
SELECT_PING_ROLE = "SELECT guild_id, ping_role FROM ping_roles WHERE guild_id = $1"

# custom questions
INSERT_CUSTOM_QUESTION = """
INSERT INTO custom_questions (guild_id, question_string)
VALUES ($1, $2)
RETURNING question_id, guild_id, question_string
"""
LIST_CUSTOM_QUESTIONS = """
SELECT question_id, guild_id, question_string FROM custom_questions
WHERE guild_id = $1
ORDER BY question_id
"""
SELECT_CUSTOM_QUESTION = """
SELECT question_id, guild_id, question_string FROM custom_questions
WHERE guild_id = $1 AND question_id = $2
"""
DELETE_CUSTOM_QUESTION = """
DELETE FROM custom_questions
WHERE guild_id = $1 AND question_id = $2
RETURNING question_id
"""
COUNT_CUSTOM_QUESTIONS = "SELECT COUNT(*) FROM custom_questions WHERE guild_id = $1"

# custom polls
INSERT_CUSTOM_POLL = """
INSERT INTO custom_polls (guild_id, poll_string)
VALUES ($1, $2)
RETURNING poll_id, guild_id, poll_string
"""
LIST_CUSTOM_POLLS = """
SELECT poll_id, guild_id, poll_string FROM custom_polls
WHERE guild_id = $1
ORDER BY poll_id
"""
SELECT_CUSTOM_POLL = """
SELECT poll_id, guild_id, poll_string FROM custom_polls
WHERE guild_id = $1 AND poll_id = $2
"""
DELETE_CUSTOM_POLL = """
DELETE FROM custom_polls
WHERE guild_id = $1 AND poll_id = $2
RETURNING poll_id
"""
COUNT_CUSTOM_POLLS = "SELECT COUNT(*) FROM custom_polls WHERE guild_id = $1"
