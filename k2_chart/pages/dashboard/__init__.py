"""Trading dashboard page"""
