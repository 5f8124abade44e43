from typing import Dict, Optional

# token -> identity ({"id", "username", "role", optional "coordinates"}).
# Tokens are issued by the identity provider in front of this service.
sessions: Dict[str, Dict] = {}


def add_session(token: str, user: Dict):
    sessions[token] = user


def get_session(token: str) -> Optional[Dict]:
    return sessions.get(token)
