#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Directory and HDF5 helpers used to store and load the offline data.
"""

import os
import numpy as np
import h5py


def create_dir(name):
    """Create a directory at the given path

    :param name: path of the directory to be created, if not already existing
    :type name: str

    """
    if not os.path.exists(name):
        os.makedirs(name)
    return


def write_group_to_h5(hdf5_file, group, fields, overwrite=True):
    """Write a dictionary of arrays (or scalars) as datasets of the group 'group' of an HDF5 file. Nested
    dictionaries become nested groups; None values are skipped.

    :param hdf5_file: path to the HDF5 file; it is created if missing
    :type hdf5_file: str
    :param group: name of the group
    :type group: str
    :param fields: values to be written
    :type fields: dict
    :param overwrite: if True, an existing group with the same name is replaced. Defaults to True
    :type overwrite: bool
    """

    with h5py.File(hdf5_file, "a") as hdf5:
        if group in hdf5 and overwrite:
            del hdf5[group]
        h5_group = hdf5.require_group(group)
        __write_fields(h5_group, fields)

    return


def __write_fields(h5_group, fields):
    for key, value in fields.items():
        if value is None:
            continue
        if isinstance(value, dict):
            __write_fields(h5_group.require_group(str(key)), value)
        elif isinstance(value, str):
            h5_group.attrs[str(key)] = value
        else:
            h5_group.create_dataset(str(key), data=np.asarray(value))
    return


def read_group_from_h5(hdf5_file, group):
    """Read a group of an HDF5 file written by 'write_group_to_h5' back into a dictionary

    :param hdf5_file: path to the HDF5 file
    :type hdf5_file: str
    :param group: name of the group
    :type group: str
    :return: values stored in the group, or an empty dictionary if the group does not exist
    :rtype: dict
    """

    with h5py.File(hdf5_file, "r") as hdf5:
        if group not in hdf5:
            return dict()
        return __read_fields(hdf5[group])


def __read_fields(h5_group):
    fields = {key: value for key, value in h5_group.attrs.items()}
    for key, item in h5_group.items():
        if isinstance(item, h5py.Group):
            fields[key] = __read_fields(item)
        else:
            fields[key] = item[()]
    return fields


__all__ = [
    "create_dir",
    "write_group_to_h5",
    "read_group_from_h5"
]
