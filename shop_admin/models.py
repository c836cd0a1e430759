from django.contrib.auth.hashers import check_password, make_password
from django.utils import timezone
from nevyra.firebase import get_db


class ShopAdmin:
    """
    Model representing a shop admin using Firebase Firestore.

    Admins live in their own collection, separate from storefront users, and
    share the OTP reset fields used by ``nevyra.password_reset``.
    """
    COLLECTION_NAME = 'shop_admins'

    def __init__(self, email=None, password=None, first_name=None, last_name=None, admin_id=None):
        self.email = email
        self.password = password
        self.first_name = first_name
        self.last_name = last_name
        self.admin_id = admin_id

    @classmethod
    def _from_doc(cls, doc):
        data = doc.to_dict()
        return cls(
            email=data.get('email'),
            password=data.get('password'),
            first_name=data.get('firstName'),
            last_name=data.get('lastName'),
            admin_id=doc.id,
        )

    @classmethod
    def collection(cls):
        return get_db().collection(cls.COLLECTION_NAME)

    def save(self):
        """Create or overwrite the admin document, keeping createdAt on updates"""
        now = timezone.now()
        payload = {
            'email': self.email,
            'password': self.password,
            'firstName': self.first_name,
            'lastName': self.last_name,
            'updatedAt': now,
        }
        if self.admin_id:
            self.collection().document(self.admin_id).set(payload, merge=True)
        else:
            payload.update({'createdAt': now, 'resetPasswordOTP': None, 'resetPasswordOTPExpires': None})
            _, doc_ref = self.collection().add(payload)
            self.admin_id = doc_ref.id
        return self

    @classmethod
    def get_by_id(cls, admin_id):
        doc = cls.collection().document(admin_id).get()
        return cls._from_doc(doc) if doc.exists else None

    @classmethod
    def get_by_email(cls, email):
        for doc in cls.collection().where('email', '==', email).limit(1).stream():
            return cls._from_doc(doc)
        return None

    @classmethod
    def create(cls, email, password, first_name=None, last_name=None):
        """Create a new shop admin from a raw password"""
        admin = cls(email=email, password=make_password(password), first_name=first_name, last_name=last_name)
        return admin.save()

    def check_password(self, raw_password):
        return bool(self.password) and check_password(raw_password, self.password)

    def set_password(self, raw_password):
        self.password = make_password(raw_password)
        self.collection().document(self.admin_id).update({
            'password': self.password,
            'updatedAt': timezone.now(),
        })

    def to_dict(self):
        """Public view of the admin; never includes the password hash"""
        return {
            'id': self.admin_id,
            'email': self.email,
            'firstName': self.first_name,
            'lastName': self.last_name,
        }

    def __str__(self):
        return self.email
