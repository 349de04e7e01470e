"""ServiceHub backend - storefront, cart, checkout and bookings on Appwrite"""
