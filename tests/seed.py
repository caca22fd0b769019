"""Ids of the rows seeded by the `session_factory` fixture."""

OWNER_ID = 1
MEMBER_ID = 2
VIEWER_ID = 3
OUTSIDER_ID = 4
PROJECT_ID = 1
OTHER_PROJECT_ID = 2
GROUP_ID = 1
