"""Exam Vault: exam paper archive with admin moderation"""
