"""Shared helpers: access guard, tokens, transactions, months, activity log"""
