"""
Weighted War - Two-seat sealed-bid card game engine.

Both players hold the ranks 1..11 and bid one card per round for the
current table card. The higher bid captures the table card; equal bids
start a war and push the table card into a pot that goes to the next
round's winner. The engine provides:
- A pure round resolver (session, action) -> result
- Session lifecycle over a pluggable document store
- A REST/WebSocket API for clients
"""

__version__ = "0.1.0"
