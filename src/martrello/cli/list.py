"""Handlers for 'martrello list' commands."""

from martrello.cli._common import command, error, format_list_line, output_json, output_result
from martrello.model.writer import list_to_dict


@command
async def list_list(args, controller) -> int:
    """List the lists of a board."""
    board = controller.store.get_board(args.board)

    if args.json:
        output_json([{k: v for k, v in list_to_dict(lst).items() if k != "cards"} for lst in board.lists])
    else:
        for lst in board.lists:
            print(format_list_line(lst))

    return 0


@command
async def list_add(args, controller) -> int:
    """Add a list at the end of a board."""
    lst = await controller.create_list(args.board, args.title)
    output_result(
        {"id": lst.id, "board_id": lst.board_id, "title": lst.title, "position": lst.position},
        f'Created list "{lst.title}" (id {lst.id})',
        args.json,
    )
    return 0


@command
async def list_move(args, controller) -> int:
    """Move a list within its board."""
    board = controller.store.get_board(args.board)
    count = len(board.lists)
    # CLI uses 1-indexed positions, the store uses 0-indexed
    if not 1 <= args.from_position <= count:
        error(f"no list at position {args.from_position} (board has {count})", args.json)
    from_index = args.from_position - 1
    to_index = max(0, min(args.to_position - 1, count - 1))

    list_id = board.lists.keys()[from_index]
    move = await controller.request_move_list(board.id, from_index, to_index)
    lst = board.lists[list_id]

    output_result(
        {"id": lst.id, "title": lst.title, "position": to_index + 1, "state": move.state.value},
        f'Moved list "{lst.title}" to position {to_index + 1}',
        args.json,
    )
    return 0


@command
async def list_rename(args, controller) -> int:
    """Rename a list."""
    lst = controller.store.get_list(args.id)
    old_title = lst.title
    await controller.update_list(args.id, args.title)
    output_result(
        {"id": lst.id, "old_title": old_title, "new_title": lst.title},
        f'Renamed list "{old_title}" to "{lst.title}"',
        args.json,
    )
    return 0


@command
async def list_delete(args, controller) -> int:
    """Delete a list and its cards."""
    lst = controller.store.get_list(args.id)
    title = lst.title
    await controller.delete_list(args.id)
    output_result({"id": args.id, "title": title}, f'Deleted list "{title}"', args.json)
    return 0
