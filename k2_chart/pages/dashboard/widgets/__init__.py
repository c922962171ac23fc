"""Dashboard widgets"""
