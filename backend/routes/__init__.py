"""Telegram bot routes"""
