from movers.common.logging_setup import get_logger

logger = get_logger("movers.notifications")

# status -> (title, customer, admin, driver)
STATUS_MESSAGES = {
    "not_started": (
        "Vehicle on the way",
        "Driver is on the way for pickup.",
        "Driver started and is on the way for pickup.",
        "Trip started. Proceed to pickup location.",
    ),
    "pickup_reached": (
        "Pickup completed",
        "Pickup is completed. Your goods are now on the move.",
        "Pickup is completed for the booking.",
        "Pickup verified. Continue to transit.",
    ),
    "in_transit": (
        "In transit",
        "Your vehicle is in transit towards the destination.",
        "Booking is now in transit.",
        "You are in transit. Keep updating as required.",
    ),
    "delivered": (
        "Delivered",
        "Your delivery has been completed successfully.",
        "Delivery has been completed for the booking.",
        "Delivery completed. Good job.",
    ),
    "assigned": (
        "Driver assigned",
        "A driver has been assigned to your booking.",
        "Driver assigned to the booking.",
        "A new booking has been assigned to you.",
    ),
    "unassigned": (
        "Driver unassigned",
        "Driver assignment was removed for your booking. We will assign a new driver soon.",
        "Driver unassigned from the booking.",
        "A booking assigned to you was unassigned.",
    ),
    "cancelled": (
        "Booking cancelled",
        "Your booking has been cancelled.",
        "A booking was cancelled.",
        "A booking was cancelled.",
    ),
    "rescheduled": (
        "Booking rescheduled",
        "Your booking has been rescheduled.",
        "A booking was rescheduled.",
        "A booking was rescheduled.",
    ),
}

FALLBACK_TITLE = "Booking update"
REASSIGNED_DRIVER_MESSAGE = "A booking assigned to you was reassigned."

OTP_EVENT_TYPE = "otp"
OTP_TITLE = "Booking OTP"
# kind -> (customer prefix, admin, driver)
OTP_MESSAGES = {
    "pickup": ("Pickup OTP", "Pickup OTP sent to customer.", "Pickup OTP sent to customer. Verify to proceed."),
    "delivery": ("Delivery OTP", "Delivery OTP sent to customer.", "Delivery OTP sent to customer. Verify to complete."),
}

NO_TOKENS_REASON = "no_push_tokens"
