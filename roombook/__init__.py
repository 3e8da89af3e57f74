"""Studio and room booking: conflict detection and recurring bookings."""
