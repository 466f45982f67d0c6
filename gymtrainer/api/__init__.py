"""REST API for the gamification core"""
