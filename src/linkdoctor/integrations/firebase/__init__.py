"""Firebase REST adapters for the identity provider and document store ports."""

from linkdoctor.integrations.firebase.auth import FirebaseIdentityProvider
from linkdoctor.integrations.firebase.firestore import FirestoreDocumentStore

__all__ = ["FirebaseIdentityProvider", "FirestoreDocumentStore"]
