class Messages:
    """User-facing texts."""

    class Common:
        START = (
            "👋 Welcome to HEYA!\n\n"
            "Create a talent account in six short steps. "
            "Use /signup to begin or /login if you already have an account. "
            "Once logged in, /me shows your profile and /logout signs you out."
        )
        CANCELLED = "Cancelled. Your answers were discarded."
        SESSION_TIMEOUT = "Session expired. Start again with /signup."
        INVALID_INPUT = "❌ Invalid input. Please try again."
        INTERNAL_ERROR = "❌ Internal error. Please try again later."
        NETWORK_ERROR = "Network error. Please check your connection and try again."
        NO_ACTIVE_SIGNUP = "There is no signup in progress. Use /signup to begin."

    class Signup:
        STAGE_HEADER = "<b>Step {number}/{total}: {title}</b>"
        ENTER_FIELD = "Enter {label}:"
        SKILL_PROMPT = "Send a skill to add it, or tap a skill to remove it."
        CONTACT_PROMPT = "Enter the contact's {label}:"
        CONTACT_ADDED = "✅ Contact {name} added."
        CONTACT_INCOMPLETE = "A contact needs a full name, an email and a relation."
        BIRTH_DATE_PROMPT = "Send your birth date as YYYY-MM-DD."
        FINALIZING = "⏳ Creating your account…"
        FINALIZE_BUSY = "Your signup is already being submitted."
        ATTACHMENT_BUSY = "Wait until the file upload finishes."
        FAILED = "Signup failed. Please try again."
        COMPLETE = "🎉 Account created successfully!"
        COMPLETE_LOGIN_FAILED = "Account created, but automatic login failed: {error}. Use /login."
        STAGE_INVALID = "Please fix the following before continuing:\n{errors}"
        STAGES_INVALID = "Some steps are incomplete:\n{errors}"

    class Auth:
        ENTER_EMAIL = "Enter your email:"
        ENTER_PASSWORD = "Enter your password:"
        LOGIN_OK = "✅ Logged in as {name}."
        LOGIN_FAILED = "Login failed. Please check your credentials."
        LOGIN_REQUIRED = "Log in first with /login."
        LOGGED_OUT = "You are logged out."
        PROFILE = "<b>{name}</b>\n{email}\nAccount type: {user_type}"
        PROFILE_FAILED = "Could not load your profile: {error}"

    class Upload:
        SEND_FILE = "Send the file as a document ({formats}), or /skip."
        FILE_SELECTED = "📎 File selected: {name}"
        FILE_REMOVED = "File removed."
        NO_FILE = "Select a file first."
        ALREADY_SAVED = "This file is already saved. Remove it first to replace it."
        FILE_TOO_LARGE = "File too large. Max {max_mb} MB."
        WRONG_TYPE = "Unsupported file type. Allowed: {formats}."
        PROCESSING = "⏳ Uploading…"
        CREDENTIAL_FAILED = "Could not get an upload signature. Please try again."
        UPLOAD_FAILED = "Upload failed. Please try again."
        MALFORMED_RESPONSE = "Upload failed: the storage response had no file URL."
        LINK_FAILED = "Attachment link failed ({status})"
        SAVED = "✅ File saved: {url}"
        SEND_CV = "Send your CV as a document (PDF, DOC, DOCX)."
