"""Service utilities"""
