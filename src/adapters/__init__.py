"""Stack Exchange chat adapters: HTTP session, page scraping and the chat
operations the core state keeper runs on.
"""
