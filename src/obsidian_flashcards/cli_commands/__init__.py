"""CLI command modules for obsidian-flashcards.

- shared.py: Common utilities (settings/logger loading, console, note location)
- note_commands.py: Note inspection commands (cards, ids, diff)
"""
