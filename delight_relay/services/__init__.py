"""Business services: validation, relay, interpretation, recording, Slack."""
