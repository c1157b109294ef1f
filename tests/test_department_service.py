"""Department operations against the in-memory store."""
import pytest

from orgstruct.errors import (
    CycleConstraintError,
    DepartmentNotFoundError,
    DuplicateNameError,
    EmptyConstraintError,
    InvalidDeleteModeError,
    InvalidDepthError,
    InvalidReassignToIDError,
    LengthConstraintError,
    ParentNotFoundError,
    TreeIntegrityError,
)
from orgstruct.services.departments import DepartmentService
from orgstruct.services.employees import EmployeeService


@pytest.fixture()
def departments(memory_repo):
    return DepartmentService(memory_repo)


@pytest.fixture()
def employees(memory_repo):
    return EmployeeService(memory_repo)


def _chain(departments, length):
    """Root -> L1 -> ... -> L(length-1); returns the ids top-down."""
    ids = [departments.create("L0").id]
    for i in range(1, length):
        ids.append(departments.create(f"L{i}", parent_id=ids[-1]).id)
    return ids


# ============================================
# Create
# ============================================

class TestCreate:
    def test_trims_name(self, departments):
        dept = departments.create("  Engineering  ")
        assert dept.name == "Engineering"
        assert dept.parent_id is None

    @pytest.mark.parametrize("name", ["", "   ", "\t\n"])
    def test_blank_name_rejected(self, departments, name):
        with pytest.raises(EmptyConstraintError):
            departments.create(name)

    def test_name_longer_than_200_rejected(self, departments):
        with pytest.raises(LengthConstraintError):
            departments.create("x" * 201)

    def test_name_of_exactly_200_accepted(self, departments):
        assert departments.create("x" * 200).name == "x" * 200

    def test_unknown_parent(self, departments):
        with pytest.raises(ParentNotFoundError):
            departments.create("Backend", parent_id=42)

    def test_duplicate_root_name(self, departments):
        departments.create("Engineering")
        with pytest.raises(DuplicateNameError):
            departments.create("Engineering")

    def test_duplicate_after_trim(self, departments):
        departments.create("Engineering")
        with pytest.raises(DuplicateNameError):
            departments.create(" Engineering ")

    def test_duplicate_under_same_parent(self, departments):
        root = departments.create("Engineering")
        departments.create("Backend", parent_id=root.id)
        with pytest.raises(DuplicateNameError):
            departments.create("Backend", parent_id=root.id)

    def test_same_name_under_different_parents(self, departments):
        a = departments.create("A")
        b = departments.create("B")
        departments.create("Support", parent_id=a.id)
        assert departments.create("Support", parent_id=b.id).parent_id == b.id

    def test_names_are_case_sensitive(self, departments):
        departments.create("Sales")
        assert departments.create("sales").name == "sales"


# ============================================
# GetByID
# ============================================

class TestGetByID:
    def test_not_found(self, departments):
        with pytest.raises(DepartmentNotFoundError):
            departments.get_by_id(99)

    @pytest.mark.parametrize("depth", [0, -1])
    def test_non_positive_depth_rejected(self, departments, depth):
        root = departments.create("Root")
        with pytest.raises(InvalidDepthError):
            departments.get_by_id(root.id, depth=depth)

    @pytest.mark.parametrize("depth", [1, 2, 3])
    def test_depth_bounds_descendants(self, departments, depth):
        ids = _chain(departments, 6)
        node = departments.get_by_id(ids[0], depth=depth, include_employees=False)
        levels = 0
        while node.children:
            assert len(node.children) == 1
            node = node.children[0]
            levels += 1
        assert levels == depth

    def test_depth_above_five_behaves_like_five(self, departments):
        ids = _chain(departments, 8)
        capped = departments.get_by_id(ids[0], depth=50, include_employees=False)
        five = departments.get_by_id(ids[0], depth=5, include_employees=False)
        assert capped == five

    def test_example_tree(self, departments, employees):
        eng = departments.create("Engineering")
        backend = departments.create("Backend", parent_id=eng.id)
        employees.create(backend.id, "Oleg Moroz", "Developer")

        tree = departments.get_by_id(eng.id, depth=2, include_employees=True)
        assert tree.name == "Engineering"
        assert tree.employees is None
        assert [c.name for c in tree.children] == ["Backend"]
        assert [e.full_name for e in tree.children[0].employees] == ["Oleg Moroz"]

    def test_employees_sorted_by_full_name(self, departments, employees):
        dept = departments.create("Ops")
        for name in ("Zoe", "Anna", "Mark"):
            employees.create(dept.id, name, "Engineer")
        tree = departments.get_by_id(dept.id)
        assert [e.full_name for e in tree.employees] == ["Anna", "Mark", "Zoe"]

    def test_without_employees(self, departments, employees):
        dept = departments.create("Ops")
        employees.create(dept.id, "Anna", "Engineer")
        assert departments.get_by_id(dept.id, include_employees=False).employees is None

    def test_round_trip(self, departments):
        root = departments.create("Root")
        child = departments.create("Child", parent_id=root.id)
        fetched = departments.get_by_id(child.id, depth=1, include_employees=False)
        assert (fetched.name, fetched.parent_id) == ("Child", root.id)


# ============================================
# Update
# ============================================

class TestUpdate:
    def test_rename(self, departments):
        dept = departments.create("Old")
        assert departments.update(dept.id, name="  New ").name == "New"

    @pytest.mark.parametrize("name", ["", "    "])
    def test_blank_name_leaves_department_unchanged(self, departments, name):
        dept = departments.create("Engineering")
        with pytest.raises(EmptyConstraintError):
            departments.update(dept.id, name=name)
        assert departments.get_by_id(dept.id).name == "Engineering"

    def test_not_found(self, departments):
        with pytest.raises(DepartmentNotFoundError):
            departments.update(7, name="X")

    def test_unknown_parent(self, departments):
        dept = departments.create("A")
        with pytest.raises(ParentNotFoundError):
            departments.update(dept.id, parent_id=99)

    def test_self_parent(self, departments):
        dept = departments.create("A")
        with pytest.raises(CycleConstraintError):
            departments.update(dept.id, parent_id=dept.id)

    @pytest.mark.parametrize("length", [2, 3, 5, 8])
    def test_moving_under_a_descendant_is_a_cycle(self, departments, length):
        ids = _chain(departments, length)
        with pytest.raises(CycleConstraintError):
            departments.update(ids[0], parent_id=ids[-1])
        assert departments.get_by_id(ids[0]).parent_id is None

    def test_move_to_other_branch(self, departments):
        a = departments.create("A")
        b = departments.create("B")
        child = departments.create("Child", parent_id=a.id)
        moved = departments.update(child.id, parent_id=b.id)
        assert moved.parent_id == b.id
        assert departments.get_by_id(a.id).children is None

    def test_no_fields_is_a_noop(self, departments):
        dept = departments.create("A")
        assert departments.update(dept.id) == departments.get_by_id(dept.id, include_employees=False)

    def test_rename_to_sibling_name(self, departments):
        departments.create("A")
        b = departments.create("B")
        with pytest.raises(DuplicateNameError):
            departments.update(b.id, name="A")

    def test_move_next_to_same_name(self, departments):
        a = departments.create("A")
        departments.create("Support", parent_id=a.id)
        support = departments.create("Support")
        with pytest.raises(DuplicateNameError):
            departments.update(support.id, parent_id=a.id)

    def test_rename_to_own_name_is_allowed(self, departments):
        dept = departments.create("A")
        assert departments.update(dept.id, name="A").name == "A"

    def test_response_is_depth_one_without_employees(self, departments, employees):
        root = departments.create("Root")
        child = departments.create("Child", parent_id=root.id)
        departments.create("Grandchild", parent_id=child.id)
        employees.create(root.id, "Anna", "Lead")
        resp = departments.update(root.id, name="Renamed")
        assert resp.employees is None
        assert [c.name for c in resp.children] == ["Child"]
        assert resp.children[0].children is None

    def test_corrupted_parent_links_stop_the_walk(self, departments, memory_repo):
        a = departments.create("A")
        b = departments.create("B")
        c = departments.create("C")
        # a <-> b loop written behind the service's back
        memory_repo.arena.departments[a.id].parent_id = b.id
        memory_repo.arena.departments[b.id].parent_id = a.id
        with pytest.raises(TreeIntegrityError):
            departments.update(c.id, parent_id=a.id)


# ============================================
# Delete
# ============================================

class TestDelete:
    def test_not_found(self, departments):
        with pytest.raises(DepartmentNotFoundError):
            departments.delete(1)

    def test_cascade_removes_subtree_and_staff(self, departments, employees, memory_repo):
        root = departments.create("Root")
        keep = departments.create("Keep")
        a = departments.create("A", parent_id=root.id)
        b = departments.create("B", parent_id=a.id)
        departments.create("C", parent_id=root.id)
        for dept_id in (root.id, a.id, b.id, b.id):
            employees.create(dept_id, f"Emp {dept_id}", "Staff")
        employees.create(keep.id, "Stays", "Staff")

        departments.delete(root.id)

        assert set(memory_repo.arena.departments) == {keep.id}
        assert [e.full_name for e in memory_repo.arena.employees.values()] == ["Stays"]

    def test_reassign_moves_direct_staff_and_drops_children(self, departments, employees, memory_repo):
        eng = departments.create("Engineering")
        backend = departments.create("Backend", parent_id=eng.id)
        infra = departments.create("Infra", parent_id=backend.id)
        oleg = employees.create(backend.id, "Oleg Moroz", "Developer")
        employees.create(infra.id, "Ivan Petrov", "SRE")

        departments.delete(backend.id, mode="reassign", reassign_to_id=eng.id)

        assert not memory_repo.departments.exists(backend.id)
        assert not memory_repo.departments.exists(infra.id)
        staff = memory_repo.arena.employees
        assert staff[oleg.id].department_id == eng.id
        assert [e.full_name for e in staff.values()] == ["Oleg Moroz"]

    def test_reassign_requires_target(self, departments):
        dept = departments.create("A")
        with pytest.raises(InvalidReassignToIDError):
            departments.delete(dept.id, mode="reassign")

    def test_reassign_to_self(self, departments):
        dept = departments.create("A")
        with pytest.raises(InvalidReassignToIDError):
            departments.delete(dept.id, mode="reassign", reassign_to_id=dept.id)

    def test_reassign_to_missing_department(self, departments):
        dept = departments.create("A")
        with pytest.raises(DepartmentNotFoundError):
            departments.delete(dept.id, mode="reassign", reassign_to_id=404)
        assert departments.get_by_id(dept.id).name == "A"

    def test_unknown_mode(self, departments):
        dept = departments.create("A")
        with pytest.raises(InvalidDeleteModeError):
            departments.delete(dept.id, mode="archive")
