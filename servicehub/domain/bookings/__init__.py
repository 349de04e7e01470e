"""Bookings domain - appointment create, list, cancel, reschedule request and delete"""
