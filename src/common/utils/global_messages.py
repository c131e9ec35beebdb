class GlobalMessages:
    # Auth Messages
    INVALID_CREDENTIALS = "Invalid credentials provided."
    COULD_NOT_VALIDATE = "Could not validate credentials. Please log in again."
    ACCOUNT_ALREADY_EXISTS = "An account with this email already exists."
    PASSWORDS_DO_NOT_MATCH = "Passwords don't match."
    REAUTHENTICATION_FAILED = "Password confirmation failed. The action was not performed."

    # Policy Messages
    ACCESS_DENIED = "Access denied."
    ROLE_NOT_ASSIGNABLE = "This role cannot be assigned."
    ADMIN_IMMUTABLE = "Administrator accounts cannot be changed or deleted here."

    # Record Messages
    RECORD_NOT_FOUND = "Record not found."
    USER_NOT_FOUND = "User not found."
    PATIENT_NOT_FOUND = "Patient not found."
    APPOINTMENT_NOT_FOUND = "Appointment not found."
    SCHEDULE_NOT_FOUND = "This provider has not set up a schedule yet."
    OWNER_MISSING = "The owning patient no longer exists."

    # Scheduling Messages
    SLOT_CONFLICT = "This time slot is no longer available. Please choose another one."
    SLOT_NOT_OFFERED = "The requested time is not one of the provider's bookable slots."
    APPOINTMENT_FINISHED = "This appointment is already completed or cancelled."

    # Store Messages
    STORE_UNAVAILABLE = "The records service is temporarily unavailable. Please try again."
    AI_UNAVAILABLE = "The AI assistant is unavailable right now. Please try again later."
