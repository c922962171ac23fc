"""K2 Chart services"""
