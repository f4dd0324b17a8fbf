"""Tests for ContactList."""

import pytest

from confind.contacts.contact_list import Contact, ContactList
from confind.core.structures import Residue


@pytest.fixture
def residues():
    return [Residue(num=i + 1, locnum=i, name="ALA") for i in range(5)]


class TestContactList:
    """Test contact records and lookups."""

    def test_add_and_read(self, residues):
        cl = ContactList()
        cl.add_contact(residues[0], residues[2], 0.4, info="x")
        assert len(cl) == 1
        assert cl.size() == 1
        assert cl.src_residue(0) is residues[0]
        assert cl.dst_residue(0) is residues[2]
        assert cl.degree(0) == 0.4
        assert cl.info(0) == "x"
        assert not cl.is_directional(0)
        assert cl.contact(0) == Contact(residues[0], residues[2], 0.4, "x", False)

    def test_non_directional_lookup_both_ways(self, residues):
        cl = ContactList()
        cl.add_contact(residues[3], residues[1], 0.2)
        assert cl.are_in_contact(residues[3], residues[1])
        assert cl.are_in_contact(residues[1], residues[3])
        assert not cl.are_in_contact(residues[1], residues[2])
        assert cl.degree_between(residues[1], residues[3]) == 0.2

    def test_directional_lookup_one_way(self, residues):
        cl = ContactList()
        cl.add_contact(residues[3], residues[1], 0.2, directional=True)
        assert cl.are_in_contact(residues[3], residues[1])
        assert not cl.are_in_contact(residues[1], residues[3])
        assert cl.degree_between(residues[1], residues[3]) == 0.0

    def test_ordered_contacts_canonical(self, residues):
        cl = ContactList()
        cl.add_contact(residues[4], residues[0], 0.1)
        cl.add_contact(residues[2], residues[1], 0.3)
        cl.add_contact(residues[0], residues[3], 0.5)
        cl.add_contact(residues[3], residues[2], 0.2, directional=True)
        assert cl.get_ordered_contacts() == [
            (residues[0], residues[3]),
            (residues[0], residues[4]),
            (residues[1], residues[2]),
            (residues[3], residues[2]),
        ]

    def test_sort_by_degree_stable(self, residues):
        cl = ContactList()
        cl.add_contact(residues[0], residues[1], 0.2, info="first")
        cl.add_contact(residues[0], residues[2], 0.7)
        cl.add_contact(residues[0], residues[3], 0.2, info="second")
        cl.add_contact(residues[1], residues[4], 0.9)
        cl.sort_by_degree()
        assert [c.degree for c in cl] == [0.9, 0.7, 0.2, 0.2]
        assert cl.info(2) == "first"
        assert cl.info(3) == "second"
        assert cl.degree_between(residues[3], residues[0]) == 0.2
        assert cl.degree_between(residues[4], residues[1]) == 0.9

    def test_residue_lists(self, residues):
        cl = ContactList()
        cl.add_contact(residues[0], residues[1], 0.2)
        cl.add_contact(residues[2], residues[3], 0.2)
        assert cl.src_residues() == [residues[0], residues[2]]
        assert cl.dst_residues() == [residues[1], residues[3]]

    def test_copy_independent(self, residues):
        cl = ContactList()
        cl.add_contact(residues[0], residues[1], 0.2)
        copied = cl.copy()
        copied.add_contact(residues[2], residues[3], 0.5)
        assert len(cl) == 1
        assert len(copied) == 2
        assert copied.contact(0) == cl.contact(0)
