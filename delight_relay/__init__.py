"""
External Delights - Intake Relay Service

FastAPI service that validates delight submissions from the agent form and
relays them to the spreadsheet-backed recorder, which appends a row and posts
a Slack notification.
"""

__version__ = "0.1.0"
