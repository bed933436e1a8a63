import unittest
from datetime import datetime, timedelta, timezone

from gpevim.db import MemberRecord, PublicationRecord
from gpevim.ordering import category_rank, sort_members, sort_publications


def _member(name, category):
    return MemberRecord(id=0, name=name, role="r", image_url="x", category=category)


class OrderingTests(unittest.TestCase):
    def test_category_rank(self):
        self.assertEqual(category_rank("coordenadores"), 1)
        self.assertEqual(category_rank("iniciacao_cientifica_junior"), 4)
        self.assertEqual(category_rank("visitantes"), 5)
        self.assertEqual(category_rank(None), 5)

    def test_members_by_rank_then_name(self):
        members = [
            _member("Beto", "colaboradores"),
            _member("Ana", "coordenadores"),
            _member("Carlos", "colaboradores"),
        ]
        self.assertEqual(
            [member.name for member in sort_members(members)], ["Ana", "Beto", "Carlos"]
        )

    def test_accented_and_lowercase_names_sort_by_base_letter(self):
        members = [
            _member("Érica", "colaboradores"),
            _member("Zé", "colaboradores"),
            _member("davi", "colaboradores"),
            _member("Eduardo", "colaboradores"),
        ]
        self.assertEqual(
            [member.name for member in sort_members(members)],
            ["davi", "Eduardo", "Érica", "Zé"],
        )

    def test_unknown_category_last(self):
        members = [_member("Ana", "outros"), _member("Zoe", "iniciacao_cientifica_junior")]
        self.assertEqual([member.name for member in sort_members(members)], ["Zoe", "Ana"])

    def test_publications_newest_first(self):
        base = datetime(2024, 5, 1, tzinfo=timezone.utc)
        records = [
            PublicationRecord(
                id=i,
                title=f"T{i}",
                author="a",
                image_url="i",
                publication_url="p",
                created_at=base + timedelta(hours=i),
            )
            for i in (1, 3, 2)
        ]
        self.assertEqual([record.id for record in sort_publications(records)], [3, 2, 1])


if __name__ == "__main__":
    unittest.main()
