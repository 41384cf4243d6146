"""Centralized response messages."""


class ErrorMessages:
    INTERNAL_SERVER_ERROR = "An unexpected error occurred"
    UNAUTHORIZED = "User not authenticated"
    VALIDATION_FAILED = "Validation failed"
    BATCH_FAILED = "Batch operation failed"

    USER_NOT_FOUND = "User profile not found"

    RESUME_NOT_FOUND = "Resume not found"
    TEMPLATE_ID_IMMUTABLE = "Template ID cannot be changed"

    SECTION_NOT_FOUND = "Section not found"
    SECTION_ALREADY_EXISTS = "Section already exists"

    TEMPLATE_NOT_FOUND = "Template not found"
    TEMPLATE_ALREADY_EXISTS = "Template already exists"

    NO_SECTIONS_FOUND = "No sections found. Please create some sections first"
    AI_FAILED = "Failed to analyze with AI"
    JSON_NOT_FOUND = "Could not extract JSON from response"

    INVALID_IMAGE_TYPE = "Invalid file type. Only JPEG, PNG, and WebP are allowed."
    IMAGE_TOO_LARGE = "File size exceeds the upload limit."
    UPLOAD_FAILED = "Image upload failed"


class SuccessMessages:
    PROFILE_RETURNED = "Profile returned successfully"
    PROFILE_CREATED = "Profile created successfully"
    PROFILE_UPDATED = "Profile updated successfully"

    RESUMES_RETURNED = "Resumes returned successfully"
    RESUME_RETURNED = "Resume returned successfully"
    RESUME_CREATED = "Resume created successfully"
    RESUME_UPDATED = "Resume updated successfully"
    RESUME_DELETED = "Resume deleted successfully"

    SECTIONS_RETURNED = "Sections returned successfully"
    SECTION_RETURNED = "Section returned successfully"
    SECTION_CREATED = "Section created successfully"
    SECTION_UPDATED = "Section updated successfully"
    SECTION_DELETED = "Section deleted successfully"

    TEMPLATES_RETURNED = "Templates returned successfully"
    TEMPLATE_LOADED = "Template loaded successfully"

    RECOMMENDATIONS_READY = "Recommendations generated successfully"
    IMAGE_UPLOADED = "Image uploaded successfully"
