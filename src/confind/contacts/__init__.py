"""Pairwise residue contact records."""

from confind.contacts.contact_list import Contact, ContactList

__all__ = ["Contact", "ContactList"]
