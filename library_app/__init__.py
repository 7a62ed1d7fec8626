"""
Library catalog service: books, users and the borrow/return workflow.
"""
