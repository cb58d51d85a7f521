"""영문 메시지 카탈로그."""

en = {
    "app": {
        "title": "Visitor Management",
    },
    "auth": {
        "userNotFound": "Sorry, we don't recognize your credentials",
        "wrongPassword": "Sorry, we don't recognize your credentials",
        "invalidCredentials": "Sorry, we don't recognize your credentials",
        "weakPassword": "This password is too weak",
        "emailAlreadyInUse": "Email is already in use",
        "invalidEmail": "Please provide a valid email",
        "passwordReset": {
            "invalidToken": "Password reset link is invalid or has expired",
            "error": "Email not recognized",
        },
        "emailAddressVerificationEmail": {
            "invalidToken": "Email verification link is invalid or has expired.",
            "error": "Email not recognized.",
            "signedInAsWrongUser": (
                "This email confirmation was sent to {0} but you're signed in as {1}."
            ),
        },
        "passwordChange": {
            "invalidPassword": "The old password is invalid",
        },
        "invalidToken": "Your session has expired, please sign in again",
    },
    "user": {
        "errors": {
            "userAlreadyExists": "User with this email already exists.",
            "userNotFound": "User not found.",
            "destroyingHimself": "You can't delete yourself.",
            "revokingOwnPermission": "You can't revoke your own admin permission.",
            "revokingPlanUser": "You can't revoke the admin permission of the plan manager.",
            "destroyingPlanUser": "You can't delete the plan manager.",
        },
    },
    "tenant": {
        "exists": "There is already a workspace on this application.",
        "url": {
            "exists": "This workspace URL is already in use.",
        },
        "invitation": {
            "invalidToken": "Invitation link is invalid or has already been used.",
            "notSameEmail": "This invitation was sent to {0} but you're signed in as {1}.",
        },
        "planActive": "There is a plan active for this workspace. Please cancel the plan first.",
        "stripeNotConfigured": "Stripe is not configured.",
        "errors": {
            "invalidPlan": "{0} is not a valid plan.",
            "invalidRole": "{0} is not a valid role.",
        },
    },
    "importer": {
        "errors": {
            "invalidFileEmpty": "The file is empty",
            "invalidFileExcel": "Only excel (.xlsx) files are allowed",
            "invalidFileUpload": (
                "Invalid file. Make sure you are using the last version of the template."
            ),
            "importHashRequired": "Import hash is required",
            "importHashExistent": "Data has already been imported",
        },
    },
    "entities": {
        "visitor": {
            "name": "Visitor",
            "errors": {
                "unique": {
                    "email": "Visitor with this email already exists",
                },
            },
        },
        "host": {
            "name": "Host",
            "errors": {
                "unique": {
                    "email": "Host with this email already exists",
                },
            },
        },
        "meeting": {
            "name": "Meeting",
            "errors": {
                "unique": {},
            },
        },
        "cdcQuestionnaire": {
            "name": "CDC Questionnaire",
            "errors": {
                "unique": {},
            },
        },
    },
    "errors": {
        "notFound": {
            "message": "Not Found",
        },
        "forbidden": {
            "message": "Forbidden",
        },
        "validation": {
            "message": "An error occurred",
            "unique": "{0} must be unique",
        },
        "defaultErrorMessage": "Ops, something went wrong",
    },
    "email": {
        "error": "Email provider is not configured.",
    },
}
