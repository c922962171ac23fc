"""Shared UI components"""
