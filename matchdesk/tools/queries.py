"""GraphQL documents for the match data service, one per retrieval tool."""

MATCH_FIELDS = """
    id
    homeTeam
    awayTeam
    kickoffAt
    venue
    status
    homeScore
    awayScore
"""

PLAYER_FIELDS = """
    id
    name
    team
    position
    shirtNumber
"""

EVENT_FIELDS = """
    id
    type
    minute
    occurredAt
    description
    match { id homeTeam awayTeam }
    player { id name team }
"""

LIST_MATCHES = f"""
query ListMatches($limit: Int) {{
  matches(limit: $limit) {{{MATCH_FIELDS}  }}
}}
"""

GET_MATCH = f"""
query GetMatch($id: ID!) {{
  match(id: $id) {{{MATCH_FIELDS}
    players {{{PLAYER_FIELDS}    }}
    events {{
      id
      type
      minute
      occurredAt
      description
      player {{ id name }}
    }}
  }}
}}
"""

LIST_PLAYERS = f"""
query ListPlayers($limit: Int) {{
  players(limit: $limit) {{{PLAYER_FIELDS}  }}
}}
"""

GET_PLAYER = f"""
query GetPlayer($id: ID!) {{
  player(id: $id) {{{PLAYER_FIELDS}
    matches {{ id homeTeam awayTeam kickoffAt }}
  }}
}}
"""

LIST_EVENTS_BY_TYPE = f"""
query ListEventsByType($type: String!, $limit: Int) {{
  events(type: $type, limit: $limit) {{{EVENT_FIELDS}  }}
}}
"""

LIST_EVENTS_BY_PLAYER = f"""
query ListEventsByPlayer($playerId: ID!, $limit: Int) {{
  events(playerId: $playerId, limit: $limit) {{{EVENT_FIELDS}  }}
}}
"""
