"""Checkout domain - cart to purchase documents (test mode, no payment)"""
