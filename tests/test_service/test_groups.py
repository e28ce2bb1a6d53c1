"""
Tests the group service layer.
"""

import pytest

from flagadmin.core.event import GROUP_CREATED, GROUP_UPDATED
from flagadmin.core.group import CreateGroupData
from flagadmin.service import groups as groups_service
from flagadmin.stores.group import GroupNotFound
from flagadmin.stores.sql import sql_stores


@pytest.mark.asyncio(loop_scope="session")
async def test_create_group(session_manager, logger, users):
    async with session_manager.session() as conn:
        async with conn.begin():
            group = await groups_service.create_group(
                group=CreateGroupData(
                    name="test_new_group",
                    description="A group",
                    user_ids=[users["alice"], users["bob"]],
                ),
                created_by="creator",
                stores=sql_stores(conn),
                log=logger,
            )

            GROUP_ID = group.group_id

            assert group.name == "test_new_group"
            assert group.created_by == "creator"

    # Try to create it again
    with pytest.raises(groups_service.NameExistsError):
        async with session_manager.session() as conn:
            async with conn.begin():
                await groups_service.create_group(
                    group=CreateGroupData(name="test_new_group"),
                    created_by="creator",
                    stores=sql_stores(conn),
                    log=logger,
                )

    async with session_manager.session() as conn:
        async with conn.begin():
            stores = sql_stores(conn)

            group = await groups_service.get_group(
                group_id=GROUP_ID, stores=stores, log=logger
            )

            assert group.description == "A group"
            assert {x.user.user_id for x in group.users} == {
                users["alice"],
                users["bob"],
            }
            assert all(x.created_by == "creator" for x in group.users)
            assert all(x.joined_at is not None for x in group.users)

            events = await stores.events.get_all(event_type=GROUP_CREATED)
            created = [x for x in events if x.data["name"] == "test_new_group"]

            assert len(created) == 1
            assert created[0].created_by == "creator"
            assert created[0].data["user_ids"] == [
                str(users["alice"]),
                str(users["bob"]),
            ]

    # Delete the group
    async with session_manager.session() as conn:
        async with conn.begin():
            await groups_service.delete_group(
                group_id=GROUP_ID, stores=sql_stores(conn), log=logger
            )

    async with session_manager.session() as conn:
        async with conn.begin():
            stores = sql_stores(conn)

            with pytest.raises(GroupNotFound):
                await groups_service.get_group(
                    group_id=GROUP_ID, stores=stores, log=logger
                )

            assert await stores.groups.get_all_users_by_groups([GROUP_ID]) == []


@pytest.mark.parametrize("name", ["", "   "])
@pytest.mark.asyncio(loop_scope="session")
async def test_create_group_with_empty_name(session_manager, logger, users, roles, name):
    async with session_manager.session() as conn:
        async with conn.begin():
            stores = sql_stores(conn)

            with pytest.raises(groups_service.BadDataError):
                await groups_service.create_group(
                    group=CreateGroupData(
                        name=name,
                        root_role=roles["root"],
                        user_ids=[users["alice"]],
                    ),
                    created_by="creator",
                    stores=stores,
                    log=logger,
                )

            assert not await stores.groups.exists_with_name(name)


@pytest.mark.asyncio(loop_scope="session")
async def test_update_group_membership(session_manager, logger, users):
    async with session_manager.session() as conn:
        async with conn.begin():
            group = await groups_service.create_group(
                group=CreateGroupData(
                    name="test_update_membership",
                    user_ids=[users["alice"], users["bob"], users["carol"]],
                ),
                created_by="creator",
                stores=sql_stores(conn),
                log=logger,
            )

            GROUP_ID = group.group_id

    async with session_manager.session() as conn:
        async with conn.begin():
            before = await groups_service.get_group(
                group_id=GROUP_ID, stores=sql_stores(conn), log=logger
            )

    async with session_manager.session() as conn:
        async with conn.begin():
            updated = await groups_service.update_group(
                group=CreateGroupData(
                    group_id=GROUP_ID,
                    name="test_update_membership_renamed",
                    user_ids=[users["bob"], users["carol"], users["dave"]],
                ),
                created_by="updater",
                stores=sql_stores(conn),
                log=logger,
            )

            assert updated.name == "test_update_membership_renamed"

    async with session_manager.session() as conn:
        async with conn.begin():
            stores = sql_stores(conn)

            after = await groups_service.get_group(
                group_id=GROUP_ID, stores=stores, log=logger
            )

            members = {x.user.user_name: x for x in after.users}
            previous = {x.user.user_name: x for x in before.users}

            assert set(members) == {"bob", "carol", "dave"}

            # Untouched members keep their original provenance
            assert members["bob"].created_by == "creator"
            assert members["bob"].joined_at == previous["bob"].joined_at
            assert members["carol"].created_by == "creator"
            assert members["dave"].created_by == "updater"

            events = await stores.events.get_all(event_type=GROUP_UPDATED)
            updates = [x for x in events if x.data["group_id"] == str(GROUP_ID)]

            assert len(updates) == 1
            assert updates[0].created_by == "updater"
            assert updates[0].data["name"] == "test_update_membership_renamed"
            assert updates[0].pre_data["name"] == "test_update_membership"

            await groups_service.delete_group(
                group_id=GROUP_ID, stores=stores, log=logger
            )


@pytest.mark.asyncio(loop_scope="session")
async def test_update_group_name_collision(session_manager, logger, users):
    async with session_manager.session() as conn:
        async with conn.begin():
            stores = sql_stores(conn)

            first = await groups_service.create_group(
                group=CreateGroupData(name="test_collision_first"),
                created_by="creator",
                stores=stores,
                log=logger,
            )
            second = await groups_service.create_group(
                group=CreateGroupData(name="test_collision_second"),
                created_by="creator",
                stores=stores,
                log=logger,
            )

            FIRST_ID, SECOND_ID = first.group_id, second.group_id

    # Keeping the current name is not a collision
    async with session_manager.session() as conn:
        async with conn.begin():
            group = await groups_service.update_group(
                group=CreateGroupData(
                    group_id=FIRST_ID,
                    name="test_collision_first",
                    description="Same name, new description",
                ),
                created_by="updater",
                stores=sql_stores(conn),
                log=logger,
            )

            assert group.description == "Same name, new description"

    with pytest.raises(groups_service.NameExistsError):
        async with session_manager.session() as conn:
            async with conn.begin():
                await groups_service.update_group(
                    group=CreateGroupData(
                        group_id=FIRST_ID, name="test_collision_second"
                    ),
                    created_by="updater",
                    stores=sql_stores(conn),
                    log=logger,
                )

    with pytest.raises(groups_service.BadDataError):
        async with session_manager.session() as conn:
            async with conn.begin():
                await groups_service.update_group(
                    group=CreateGroupData(name="test_collision_no_id"),
                    created_by="updater",
                    stores=sql_stores(conn),
                    log=logger,
                )

    async with session_manager.session() as conn:
        async with conn.begin():
            stores = sql_stores(conn)

            assert (await stores.groups.get(FIRST_ID)).name == "test_collision_first"

            for group_id in (FIRST_ID, SECOND_ID):
                await groups_service.delete_group(
                    group_id=group_id, stores=stores, log=logger
                )


@pytest.mark.asyncio(loop_scope="session")
async def test_update_unknown_group(session_manager, logger):
    from flagadmin.core.uuid import uuid7

    async with session_manager.session() as conn:
        async with conn.begin():
            with pytest.raises(GroupNotFound):
                await groups_service.update_group(
                    group=CreateGroupData(group_id=uuid7(), name="test_unknown"),
                    created_by="updater",
                    stores=sql_stores(conn),
                    log=logger,
                )


@pytest.mark.asyncio(loop_scope="session")
async def test_root_and_project_roles_are_exclusive(session_manager, logger, roles):
    async with session_manager.session() as conn:
        async with conn.begin():
            stores = sql_stores(conn)

            project_group = await groups_service.create_group(
                group=CreateGroupData(name="test_roles_project"),
                created_by="creator",
                stores=stores,
                log=logger,
            )
            plain_group = await groups_service.create_group(
                group=CreateGroupData(name="test_roles_plain"),
                created_by="creator",
                stores=stores,
                log=logger,
            )

            await groups_service.add_group_to_role(
                group_id=project_group.group_id,
                role_id=roles["project"],
                project="test-roles-project",
                created_by="creator",
                stores=stores,
                log=logger,
            )

            PROJECT_GROUP_ID = project_group.group_id
            PLAIN_GROUP_ID = plain_group.group_id

    # A group with a project role cannot also get a root role
    with pytest.raises(groups_service.BadDataError):
        async with session_manager.session() as conn:
            async with conn.begin():
                await groups_service.update_group(
                    group=CreateGroupData(
                        group_id=PROJECT_GROUP_ID,
                        name="test_roles_project",
                        root_role=roles["root"],
                    ),
                    created_by="updater",
                    stores=sql_stores(conn),
                    log=logger,
                )

    # A group with neither can
    async with session_manager.session() as conn:
        async with conn.begin():
            group = await groups_service.update_group(
                group=CreateGroupData(
                    group_id=PLAIN_GROUP_ID,
                    name="test_roles_plain",
                    root_role=roles["root"],
                ),
                created_by="updater",
                stores=sql_stores(conn),
                log=logger,
            )

            assert group.root_role == roles["root"]

    # ...after which it cannot be given a project role
    with pytest.raises(groups_service.BadDataError):
        async with session_manager.session() as conn:
            async with conn.begin():
                await groups_service.add_group_to_role(
                    group_id=PLAIN_GROUP_ID,
                    role_id=roles["project"],
                    project="test-roles-project",
                    created_by="creator",
                    stores=sql_stores(conn),
                    log=logger,
                )

    async with session_manager.session() as conn:
        async with conn.begin():
            stores = sql_stores(conn)

            assert (await stores.groups.get(PROJECT_GROUP_ID)).root_role is None

            for group_id in (PROJECT_GROUP_ID, PLAIN_GROUP_ID):
                await groups_service.delete_group(
                    group_id=group_id, stores=stores, log=logger
                )


@pytest.mark.asyncio(loop_scope="session")
async def test_get_all_keeps_groups_apart(session_manager, logger, users, roles):
    async with session_manager.session() as conn:
        async with conn.begin():
            stores = sql_stores(conn)

            first = await groups_service.create_group(
                group=CreateGroupData(name="test_all_first", user_ids=[users["alice"]]),
                created_by="creator",
                stores=stores,
                log=logger,
            )
            second = await groups_service.create_group(
                group=CreateGroupData(
                    name="test_all_second", user_ids=[users["bob"], users["carol"]]
                ),
                created_by="creator",
                stores=stores,
                log=logger,
            )
            empty = await groups_service.create_group(
                group=CreateGroupData(name="test_all_empty"),
                created_by="creator",
                stores=stores,
                log=logger,
            )

            for project in ("test-all-one", "test-all-two"):
                await groups_service.add_group_to_role(
                    group_id=first.group_id,
                    role_id=roles["project"],
                    project=project,
                    created_by="creator",
                    stores=stores,
                    log=logger,
                )

            GROUP_IDS = [first.group_id, second.group_id, empty.group_id]

    async with session_manager.session() as conn:
        async with conn.begin():
            stores = sql_stores(conn)

            groups = await groups_service.get_all(stores=stores, log=logger)
            ours = {g.name: g for g in groups if g.group_id in GROUP_IDS}

            # Listing follows creation order
            assert [g.group_id for g in groups if g.group_id in GROUP_IDS] == GROUP_IDS

            assert [x.user.user_name for x in ours["test_all_first"].users] == ["alice"]
            assert sorted(ours["test_all_first"].projects) == [
                "test-all-one",
                "test-all-two",
            ]

            assert sorted(x.user.user_name for x in ours["test_all_second"].users) == [
                "bob",
                "carol",
            ]
            assert ours["test_all_second"].projects == []

            assert ours["test_all_empty"].users == []
            assert ours["test_all_empty"].projects == []

            for group_id in GROUP_IDS:
                await groups_service.delete_group(
                    group_id=group_id, stores=stores, log=logger
                )


@pytest.mark.asyncio(loop_scope="session")
async def test_project_groups(session_manager, logger, users, roles):
    async with session_manager.session() as conn:
        async with conn.begin():
            stores = sql_stores(conn)

            assert (
                await groups_service.get_project_groups(
                    stores=stores, log=logger, project_id="test-no-such-project"
                )
                == []
            )
            assert (
                await groups_service.get_roles_for_project(
                    project_id="test-no-such-project", stores=stores, log=logger
                )
                == []
            )

            group = await groups_service.create_group(
                group=CreateGroupData(
                    name="test_project_groups", user_ids=[users["dave"]]
                ),
                created_by="creator",
                stores=stores,
                log=logger,
            )
            await groups_service.add_group_to_role(
                group_id=group.group_id,
                role_id=roles["project"],
                project="test-project-groups",
                created_by="creator",
                stores=stores,
                log=logger,
            )

            GROUP_ID = group.group_id

    async with session_manager.session() as conn:
        async with conn.begin():
            stores = sql_stores(conn)

            project_groups = await groups_service.get_project_groups(
                stores=stores, log=logger, project_id="test-project-groups"
            )

            assert len(project_groups) == 1
            assert project_groups[0].group_id == GROUP_ID
            assert project_groups[0].role_id == roles["project"]
            assert project_groups[0].added_at is not None
            assert [x.user.user_name for x in project_groups[0].users] == ["dave"]

            all_project_groups = await groups_service.get_project_groups(
                stores=stores, log=logger
            )
            assert GROUP_ID in {x.group_id for x in all_project_groups}

            project_roles = await groups_service.get_roles_for_project(
                project_id="test-project-groups", stores=stores, log=logger
            )
            assert [(x.group_id, x.role_id) for x in project_roles] == [
                (GROUP_ID, roles["project"])
            ]

            await groups_service.remove_group_from_role(
                group_id=GROUP_ID,
                role_id=roles["project"],
                project="test-project-groups",
                stores=stores,
                log=logger,
            )

            assert (
                await groups_service.get_project_groups(
                    stores=stores, log=logger, project_id="test-project-groups"
                )
                == []
            )

            await groups_service.delete_group(
                group_id=GROUP_ID, stores=stores, log=logger
            )


@pytest.mark.asyncio(loop_scope="session")
async def test_create_group_with_unknown_references(session_manager, logger, users, roles):
    from flagadmin.core.uuid import uuid7
    from flagadmin.service.users import UserNotFound
    from flagadmin.stores.role import RoleNotFound

    with pytest.raises(UserNotFound):
        async with session_manager.session() as conn:
            async with conn.begin():
                await groups_service.create_group(
                    group=CreateGroupData(
                        name="test_unknown_member", user_ids=[users["alice"], uuid7()]
                    ),
                    created_by="creator",
                    stores=sql_stores(conn),
                    log=logger,
                )

    with pytest.raises(RoleNotFound):
        async with session_manager.session() as conn:
            async with conn.begin():
                await groups_service.create_group(
                    group=CreateGroupData(name="test_unknown_root", root_role=uuid7()),
                    created_by="creator",
                    stores=sql_stores(conn),
                    log=logger,
                )

    # A project role is not a root role
    with pytest.raises(groups_service.BadDataError):
        async with session_manager.session() as conn:
            async with conn.begin():
                await groups_service.create_group(
                    group=CreateGroupData(
                        name="test_wrong_root", root_role=roles["project"]
                    ),
                    created_by="creator",
                    stores=sql_stores(conn),
                    log=logger,
                )

    # Nothing was written
    async with session_manager.session() as conn:
        async with conn.begin():
            stores = sql_stores(conn)

            for name in ("test_unknown_member", "test_unknown_root", "test_wrong_root"):
                assert not await stores.groups.exists_with_name(name)


@pytest.mark.asyncio(loop_scope="session")
async def test_update_group_with_unknown_member(session_manager, logger, users):
    from flagadmin.core.uuid import uuid7
    from flagadmin.service.users import UserNotFound

    async with session_manager.session() as conn:
        async with conn.begin():
            group = await groups_service.create_group(
                group=CreateGroupData(
                    name="test_update_unknown_member", user_ids=[users["alice"]]
                ),
                created_by="creator",
                stores=sql_stores(conn),
                log=logger,
            )

            GROUP_ID = group.group_id

    with pytest.raises(UserNotFound):
        async with session_manager.session() as conn:
            async with conn.begin():
                await groups_service.update_group(
                    group=CreateGroupData(
                        group_id=GROUP_ID,
                        name="test_update_unknown_member",
                        user_ids=[uuid7()],
                    ),
                    created_by="updater",
                    stores=sql_stores(conn),
                    log=logger,
                )

    async with session_manager.session() as conn:
        async with conn.begin():
            stores = sql_stores(conn)

            group = await groups_service.get_group(
                group_id=GROUP_ID, stores=stores, log=logger
            )
            assert [x.user.user_id for x in group.users] == [users["alice"]]

            await groups_service.delete_group(
                group_id=GROUP_ID, stores=stores, log=logger
            )


@pytest.mark.asyncio(loop_scope="session")
async def test_add_group_to_role_checks(session_manager, logger, roles):
    from flagadmin.core.uuid import uuid7
    from flagadmin.stores.role import RoleNotFound

    async with session_manager.session() as conn:
        async with conn.begin():
            stores = sql_stores(conn)

            group = await groups_service.create_group(
                group=CreateGroupData(name="test_role_checks"),
                created_by="creator",
                stores=stores,
                log=logger,
            )
            await groups_service.add_group_to_role(
                group_id=group.group_id,
                role_id=roles["project"],
                project="test-role-checks",
                created_by="creator",
                stores=stores,
                log=logger,
            )

            GROUP_ID = group.group_id

    # The same role twice in the same project
    with pytest.raises(groups_service.GroupRoleExistsError):
        async with session_manager.session() as conn:
            async with conn.begin():
                await groups_service.add_group_to_role(
                    group_id=GROUP_ID,
                    role_id=roles["project"],
                    project="test-role-checks",
                    created_by="creator",
                    stores=sql_stores(conn),
                    log=logger,
                )

    # A root role is not a project role
    with pytest.raises(groups_service.BadDataError):
        async with session_manager.session() as conn:
            async with conn.begin():
                await groups_service.add_group_to_role(
                    group_id=GROUP_ID,
                    role_id=roles["root"],
                    project="test-role-checks",
                    created_by="creator",
                    stores=sql_stores(conn),
                    log=logger,
                )

    with pytest.raises(RoleNotFound):
        async with session_manager.session() as conn:
            async with conn.begin():
                await groups_service.add_group_to_role(
                    group_id=GROUP_ID,
                    role_id=uuid7(),
                    project="test-role-checks",
                    created_by="creator",
                    stores=sql_stores(conn),
                    log=logger,
                )

    with pytest.raises(GroupNotFound):
        async with session_manager.session() as conn:
            async with conn.begin():
                await groups_service.add_group_to_role(
                    group_id=uuid7(),
                    role_id=roles["project"],
                    project="test-role-checks",
                    created_by="creator",
                    stores=sql_stores(conn),
                    log=logger,
                )

    async with session_manager.session() as conn:
        async with conn.begin():
            stores = sql_stores(conn)

            # The same role in another project is fine
            await groups_service.add_group_to_role(
                group_id=GROUP_ID,
                role_id=roles["project"],
                project="test-role-checks-other",
                created_by="creator",
                stores=stores,
                log=logger,
            )

            project_roles = await groups_service.get_roles_for_project(
                project_id="test-role-checks", stores=stores, log=logger
            )
            assert [(x.group_id, x.role_id) for x in project_roles] == [
                (GROUP_ID, roles["project"])
            ]

            await groups_service.delete_group(
                group_id=GROUP_ID, stores=stores, log=logger
            )


@pytest.mark.asyncio(loop_scope="session")
async def test_project_group_with_two_roles(session_manager, logger, roles):
    from flagadmin.service import roles as role_service

    async with session_manager.session() as conn:
        async with conn.begin():
            stores = sql_stores(conn)

            second_role = await role_service.create(
                name="test_second_project_role", type="project", conn=conn, log=logger
            )
            group = await groups_service.create_group(
                group=CreateGroupData(name="test_two_roles"),
                created_by="creator",
                stores=stores,
                log=logger,
            )
            await groups_service.add_group_to_role(
                group_id=group.group_id,
                role_id=roles["project"],
                project="test-two-roles",
                created_by="creator",
                stores=stores,
                log=logger,
            )

            GROUP_ID = group.group_id
            SECOND_ROLE_ID = second_role.role_id

    async with session_manager.session() as conn:
        async with conn.begin():
            await groups_service.add_group_to_role(
                group_id=GROUP_ID,
                role_id=SECOND_ROLE_ID,
                project="test-two-roles",
                created_by="creator",
                stores=sql_stores(conn),
                log=logger,
            )

    async with session_manager.session() as conn:
        async with conn.begin():
            stores = sql_stores(conn)

            project_groups = await groups_service.get_project_groups(
                stores=stores, log=logger, project_id="test-two-roles"
            )

            # One entry, carrying the role that was added first
            assert len(project_groups) == 1
            assert project_groups[0].group_id == GROUP_ID
            assert project_groups[0].role_id == roles["project"]

            project_roles = await groups_service.get_roles_for_project(
                project_id="test-two-roles", stores=stores, log=logger
            )
            assert [x.role_id for x in project_roles] == [
                roles["project"],
                SECOND_ROLE_ID,
            ]
            assert project_groups[0].added_at == project_roles[0].created_at

            await groups_service.delete_group(
                group_id=GROUP_ID, stores=stores, log=logger
            )
