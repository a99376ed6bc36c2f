STANDUPS_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS standups (
  id UUID PRIMARY KEY,
  standup_date DATE NOT NULL UNIQUE,
  title TEXT NOT NULL,
  timezone TEXT NOT NULL,

  status TEXT NOT NULL CHECK (status IN ('running', 'completed', 'error')),
  result TEXT,
  error TEXT,

  started_at TIMESTAMPTZ,
  completed_at TIMESTAMPTZ,
  created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
  updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
);

CREATE INDEX IF NOT EXISTS idx_standups_date ON standups(standup_date DESC);
CREATE INDEX IF NOT EXISTS idx_standups_status ON standups(status);
"""

STANDUP_ENTRIES_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS standup_entries (
  id BIGSERIAL PRIMARY KEY,
  standup_id UUID NOT NULL REFERENCES standups(id) ON DELETE CASCADE,
  agent_id TEXT NOT NULL,
  user_id TEXT,
  turn_order INT NOT NULL,

  yesterday TEXT,
  today TEXT,
  blockers TEXT,
  tasks JSONB,
  raw TEXT NOT NULL,

  created_at TIMESTAMPTZ NOT NULL DEFAULT now(),

  CONSTRAINT standup_entries_standup_agent_unique UNIQUE (standup_id, agent_id)
);

CREATE INDEX IF NOT EXISTS idx_standup_entries_turn_order ON standup_entries(standup_id, turn_order);
"""

STANDUP_MESSAGES_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS standup_messages (
  id BIGSERIAL PRIMARY KEY,
  standup_id UUID NOT NULL REFERENCES standups(id) ON DELETE CASCADE,
  kind TEXT NOT NULL CHECK (kind IN ('system', 'agent')),
  agent_id TEXT,
  content TEXT NOT NULL,
  created_at TIMESTAMPTZ NOT NULL DEFAULT now()
);

CREATE INDEX IF NOT EXISTS idx_standup_messages_standup_created ON standup_messages(standup_id, created_at);
"""

ALL_TABLES_SQL = (STANDUPS_TABLE_SQL, STANDUP_ENTRIES_TABLE_SQL, STANDUP_MESSAGES_TABLE_SQL)
