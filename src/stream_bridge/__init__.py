"""
GitHub ⇄ Zulip stream bridge (Lambda)

Where: AWS Lambda behind API Gateway / Function URLs.
What:  Announce tags, create or refresh `project/<repo>` streams, and serve a
       shields.io subscriber badge for a stream.
Why:   Keep each repository's Zulip stream in step with GitHub without a
       long-running bot.
"""

__all__ = [
    "config",
    "errors",
    "github",
    "handler",
    "inbound",
    "schemas",
    "transport",
    "validation",
    "zulip",
]
