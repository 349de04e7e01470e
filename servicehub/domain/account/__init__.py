"""Account domain - sign-up, sessions, verification, recovery and profile"""
