STANDUP_PROMPT = """Please provide your daily standup report in the following format:

Yesterday: What you worked on yesterday
Today: What you plan to work on today
Blockers: Any blockers or issues to raise

Keep each section concise (2-3 sentences). Optionally add structured tasks:
Tasks: [{"id": "TASK-123", "title": "...", "status": "..."}]"""

OPENING_MESSAGE = "{title}: collecting reports from {agents}."

CLOSING_MESSAGE = "Standup closed: {received} of {expected} reports received."
